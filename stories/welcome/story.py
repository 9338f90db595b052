from __future__ import annotations
from storybot.conversation.activators import ExactActivator
from storybot.conversation.story import Story
from storybot.conversation.story_manager import StoryManager
from storybot.domain.models import Button, Keyboard

class WelcomeStory(Story):
    name = "welcome"

    def activators(self):
        return [ExactActivator("/start")]

    async def handle(self, bot) -> None:
        bot.context.set("greeted", True)
        keyboard = Keyboard.basic([Button(label="Help"), Button(label="Send a photo")])
        await bot.send_message(f"Hi {bot.context.user.name or 'there'}!", keyboard)

def register(manager: StoryManager) -> None:
    manager.add(WelcomeStory())

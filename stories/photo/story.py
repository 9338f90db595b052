from __future__ import annotations
from storybot.conversation.activators import AttachmentActivator
from storybot.conversation.story import Story
from storybot.conversation.story_manager import StoryManager

class PhotoStory(Story):
    name = "photo"

    def activators(self):
        return [AttachmentActivator().image()]

    async def handle(self, bot) -> None:
        count = int(bot.context.get("photos", 0)) + 1
        bot.context.set("photos", count)
        await bot.send_message(f"Got it, that's photo number {count}.")

def register(manager: StoryManager) -> None:
    manager.add(PhotoStory())

import pathlib
import pytest
from storybot.conversation.loader import StoryLoadError, load_stories
from storybot.conversation.story_manager import StoryManager
from storybot.domain.models import Attachment, IncomingMessage

STORY = (
    "from storybot.conversation.activators import ExactActivator\n"
    "from storybot.conversation.story import Story\n"
    "class S(Story):\n"
    "  name = '{name}'\n"
    "  def activators(self): return [ExactActivator('/go')]\n"
    "  async def handle(self, bot): return None\n"
    "def register(manager):\n"
    "  manager.add(S())\n"
)

def _write(sdir, name, body):
    (sdir / name).mkdir(parents=True)
    (sdir / name / "story.py").write_text(body)

def test_loads_stories_in_directory_order(tmp_path):
    sdir = tmp_path / "stories"
    for name in ("b_second", "a_first"):
        _write(sdir, name, STORY.format(name=name))
    (sdir / "notes").mkdir()

    manager = StoryManager()
    loaded = load_stories(str(sdir), manager)

    assert [m.name for m in loaded] == ["a_first", "b_second"]
    assert [m.stories for m in loaded] == [["a_first"], ["b_second"]]
    assert [s.name for s in manager.stories()] == ["a_first", "b_second"]

def test_broken_story_aborts_load(tmp_path):
    sdir = tmp_path / "stories"
    _write(sdir, "broken", "raise RuntimeError('nope')\n")
    with pytest.raises(StoryLoadError) as err:
        load_stories(str(sdir), StoryManager())
    assert err.value.name == "broken"
    assert "nope" in err.value.reason

def test_story_without_register(tmp_path):
    sdir = tmp_path / "stories"
    _write(sdir, "silent", "x = 1\n")
    with pytest.raises(StoryLoadError) as err:
        load_stories(str(sdir), StoryManager())
    assert err.value.reason == "missing register(manager)"

def test_missing_dir(tmp_path):
    assert load_stories(str(tmp_path / "nope"), StoryManager()) == []

def test_bundled_stories():
    manager = StoryManager()
    loaded = load_stories(str(pathlib.Path(__file__).parent.parent / "stories"), manager)
    assert [m.name for m in loaded] == ["photo", "welcome"]

    photo = IncomingMessage(attachment=Attachment.create("image", "https://example.com/p.jpg"))
    assert manager.find(None, photo).story.name == "photo"
    assert manager.find(None, IncomingMessage(text="/start")).story.name == "welcome"
    assert not manager.find(None, IncomingMessage(text="hello")).found

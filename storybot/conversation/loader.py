from __future__ import annotations
import importlib.util, sys, pathlib
from dataclasses import dataclass, field
from types import ModuleType
from storybot.conversation.story_manager import StoryManager
from storybot.observability.logging import get_logger

log = get_logger("stories")

class StoryLoadError(RuntimeError):
    """A story package could not be imported or registered."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"story {name!r}: {reason}")
        self.name = name
        self.reason = reason

@dataclass
class LoadedStoryModule:
    name: str
    path: str
    stories: list[str] = field(default_factory=list)

def discover(story_dir: str) -> list[pathlib.Path]:
    """``story.py`` files under ``story_dir``, sorted by package name."""
    root = pathlib.Path(story_dir)
    if not root.is_dir():
        return []
    return [p / "story.py" for p in sorted(root.iterdir()) if (p / "story.py").is_file()]

def import_story_module(path: pathlib.Path) -> ModuleType:
    name = path.parent.name
    spec = importlib.util.spec_from_file_location(f"sbot_story_{name}", str(path))
    if spec is None or spec.loader is None:
        raise StoryLoadError(name, "not importable")
    mod = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = mod
    try:
        spec.loader.exec_module(mod)
    except Exception as e:
        sys.modules.pop(spec.name, None)
        raise StoryLoadError(name, f"import failed: {e}") from e
    if not callable(getattr(mod, "register", None)):
        sys.modules.pop(spec.name, None)
        raise StoryLoadError(name, "missing register(manager)")
    return mod

def load_stories(story_dir: str, manager: StoryManager) -> list[LoadedStoryModule]:
    """Register every story package under ``story_dir`` with ``manager``.

    Registration order decides which story wins a message, so a package
    that fails to load aborts the whole load with ``StoryLoadError``
    instead of silently shifting the order of the rest.
    """
    paths = discover(story_dir)
    if not paths:
        log.info("story_dir_empty", story_dir=story_dir)
    loaded: list[LoadedStoryModule] = []
    for path in paths:
        mod = import_story_module(path)
        before = len(manager.stories())
        mod.register(manager)
        added = [s.name for s in manager.stories()[before:]]
        loaded.append(LoadedStoryModule(name=path.parent.name, path=str(path), stories=added))
        log.info("story_loaded", package=path.parent.name, stories=added)
    return loaded

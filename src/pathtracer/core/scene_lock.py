"""Process-wide render lock for the scene tables.

Primitives and materials live in module-level Taichi fields, so there is a
single scene per process no matter how many SceneManager objects exist. The
lock therefore lives at module level as well: while it is held, every
function that writes the primitive table or a material registry raises
SceneLockedError.
"""

import logging

logger = logging.getLogger(__name__)

_scene_locked = False


class SceneLockedError(RuntimeError):
    """Raised when a locked scene is modified."""


def lock_scene() -> None:
    """Freeze the scene tables for the duration of a render."""
    global _scene_locked
    _scene_locked = True
    logger.debug("Scene locked")


def unlock_scene() -> None:
    """Allow modifications to the scene tables again."""
    global _scene_locked
    _scene_locked = False
    logger.debug("Scene unlocked")


def is_scene_locked() -> bool:
    return _scene_locked


def check_scene_unlocked() -> None:
    """Raise if a render currently holds the scene lock.

    Raises:
        SceneLockedError: If the scene is locked.
    """
    if _scene_locked:
        raise SceneLockedError("Scene is locked while a render is in progress")

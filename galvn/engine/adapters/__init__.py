from __future__ import annotations

"""Adapter interfaces and default implementations for pluggable host backends.

Currently provides:
- IAudio: abstraction for the single BGM channel
- PygameAudio: pygame.mixer.music implementation used by the pygame renderer
"""

from .audio import IAudio, PygameAudio  # noqa: F401

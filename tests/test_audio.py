"""
Tests for the pygame music adapter
"""
from unittest.mock import MagicMock, patch

import pytest

from galvn.engine.adapters.audio import PygameAudio


class TestPygameAudio:
    """PygameAudio drives pygame.mixer.music."""

    def test_play_loops_and_pauses(self, tmp_path):
        track = tmp_path / "calm.mp3"
        track.write_bytes(b"\0")
        with patch("galvn.engine.adapters.audio.pygame", MagicMock()) as pg:
            audio = PygameAudio(lambda p: str(tmp_path / p))
            audio.play("calm.mp3", loop=True)
            pg.mixer.music.load.assert_called_once_with(str(track))
            pg.mixer.music.play.assert_called_once_with(-1)
            assert audio.current == "calm.mp3"

            audio.pause()
            pg.mixer.music.pause.assert_called_once()
            assert audio.paused

            audio.stop()
            pg.mixer.music.stop.assert_called_once()
            assert audio.current is None

    def test_play_once(self, tmp_path):
        track = tmp_path / "a.ogg"
        track.write_bytes(b"\0")
        with patch("galvn.engine.adapters.audio.pygame", MagicMock()) as pg:
            PygameAudio().play(str(track))
            pg.mixer.music.play.assert_called_once_with(0)

    def test_missing_file_raises(self, tmp_path):
        with patch("galvn.engine.adapters.audio.pygame", MagicMock()) as pg:
            audio = PygameAudio()
            with pytest.raises(FileNotFoundError):
                audio.play(str(tmp_path / "missing.mp3"))
            pg.mixer.music.load.assert_not_called()
            assert audio.current is None

    def test_empty_asset_means_stop(self):
        with patch("galvn.engine.adapters.audio.pygame", MagicMock()) as pg:
            PygameAudio().play(None)
            pg.mixer.music.stop.assert_called_once()
            pg.mixer.music.play.assert_not_called()

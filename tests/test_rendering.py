"""Tests for framebuffer rendering and console logging."""

import jax.numpy as jnp
import numpy as np
import pytest
from chipvm import display_to_rgb, create_color_scheme
from chipvm.logging import ConsoleLogger, format_registers


class TestDisplayToRGB:
    def test_shape_and_colours(self):
        display = jnp.zeros((64, 32), dtype=jnp.bool_).at[3, 1].set(True)

        frame = display_to_rgb(display, scale=1, on_color=(1, 2, 3), off_color=(9, 9, 9))

        assert frame.shape == (32, 64, 3)
        assert frame.dtype == np.uint8
        assert tuple(frame[1, 3]) == (1, 2, 3)
        assert tuple(frame[0, 0]) == (9, 9, 9)

    def test_upscaling(self):
        display = jnp.zeros((64, 32), dtype=jnp.bool_).at[0, 0].set(True)

        frame = display_to_rgb(display, scale=4)

        assert frame.shape == (128, 256, 3)
        assert (frame[:4, :4] == (0, 255, 0)).all()
        assert (frame[4, 4] == (0, 0, 0)).all()

    def test_invalid_scale(self):
        with pytest.raises(ValueError):
            display_to_rgb(jnp.zeros((64, 32), dtype=jnp.bool_), scale=0)


class TestColorSchemes:
    @pytest.mark.parametrize("scheme", ["classic", "amber", "white", "blue", "retro"])
    def test_known(self, scheme):
        on_color, off_color = create_color_scheme(scheme)
        assert len(on_color) == 3 and len(off_color) == 3

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown color scheme"):
            create_color_scheme("plasma")


class TestConsoleLogger:
    def test_level_filtering(self, capsys):
        logger = ConsoleLogger("test", log_level="WARNING", use_colors=False, show_timestamps=False)

        logger.info("hidden")
        logger.error("shown")

        out = capsys.readouterr().out
        assert "hidden" not in out
        assert "[   ERROR][test] shown" in out

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            ConsoleLogger(log_level="VERBOSE")

    def test_format_registers(self):
        V = jnp.arange(16, dtype=jnp.uint8)

        dump = format_registers(V)

        assert dump.startswith("V0:00 V1:01")
        assert dump.endswith("VF:0F")

from config import AmbilightSettings
from diagnostics import FrameStats, format_sample, print_banner


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestFrameStats:
    def test_reports_fps_every_n_frames(self, capsys):
        clock = FakeClock()
        stats = FrameStats(report_every=3, clock=clock)

        clock.now = 1.5
        assert stats.frame_sent() is None
        assert stats.frame_sent() is None
        assert stats.frame_sent() == 2.0

        clock.now = 2.5
        stats.frame_sent()
        stats.frame_sent()
        assert stats.frame_sent() == 3.0

        out = capsys.readouterr().out
        assert "[Stats] Frame 3 | FPS: 2.0" in out
        assert "Frame 6 | FPS: 3.0 | Total: 2.5s" in out

    def test_counts_skips(self):
        stats = FrameStats(clock=FakeClock())
        stats.frame_skipped()
        stats.capture_failed()
        stats.write_failed()

        snapshot = stats.snapshot()
        assert snapshot["frames_skipped"] == 3
        assert snapshot["capture_failures"] == 1
        assert snapshot["write_failures"] == 1
        assert snapshot["frames_sent"] == 0


class TestBanner:
    def test_banner_lists_led_order(self, capsys):
        print_banner(AmbilightSettings(fps=60))
        out = capsys.readouterr().out
        assert "Target FPS: 60" in out
        assert "TOP(57) -> RIGHT(32) -> BOTTOM(57) -> LEFT(32)" in out
        assert "536 bytes" in out
        assert "Gamma" not in out

    def test_debug_banner(self, capsys):
        print_banner(AmbilightSettings(debug=True))
        out = capsys.readouterr().out
        assert "Gamma: 2.2" in out
        assert "skip=2" in out


def test_format_sample():
    assert format_sample([(1, 2, 3), (4, 5, 6), (7, 8, 9), (0, 0, 0)]) == (
        "LED0:(1,2,3), LED1:(4,5,6), LED2:(7,8,9)"
    )

"""
Unit tests for the windowed view and autoscroll policy
"""
from AMC.UI.views.log_viewer.viewport import Viewport, visible_window


class TestVisibleWindow:
    """Test visible_window"""

    def test_empty(self):
        assert visible_window(0, 0, 10) == range(0, 0)
        assert visible_window(10, 0, 0) == range(0, 0)

    def test_short_list(self):
        assert visible_window(3, 0, 10) == range(0, 3)

    def test_offset_clamped(self):
        assert visible_window(100, 500, 10) == range(90, 100)
        assert visible_window(100, -5, 10) == range(0, 10)

    def test_window_size_independent_of_total(self):
        assert len(visible_window(1_000_000, 1234, 25)) == 25


class TestViewport:
    """Test Viewport"""

    def test_initial_load_scrolls_to_end(self):
        viewport = Viewport(height=10)
        assert viewport.on_data_changed(500, streaming=False)
        assert viewport.window() == range(490, 500)

    def test_empty_initial_load_keeps_pending_scroll(self):
        viewport = Viewport(height=10)
        viewport.on_data_changed(0, streaming=False)
        assert viewport.on_data_changed(50, streaming=False)
        assert viewport.at_end

    def test_streaming_follows_new_data(self):
        viewport = Viewport(height=10)
        viewport.on_data_changed(100, streaming=False)
        viewport.scroll_to(20)
        assert viewport.on_data_changed(120, streaming=True)
        assert viewport.offset == 110

    def test_not_streaming_keeps_position(self):
        viewport = Viewport(height=10)
        viewport.on_data_changed(100, streaming=False)
        viewport.scroll_to(20)
        assert not viewport.on_data_changed(150, streaming=False)
        assert viewport.offset == 20

    def test_shrinking_list_clamps(self):
        viewport = Viewport(height=10)
        viewport.on_data_changed(100, streaming=False)
        viewport.scroll_to(80)
        viewport.on_data_changed(30, streaming=False)
        assert viewport.offset == 20

    def test_visible_items(self):
        items = list(range(100))
        viewport = Viewport(height=5)
        viewport.on_data_changed(len(items), streaming=False)
        viewport.scroll_to_top()
        viewport.scroll_by(3)
        assert viewport.visible(items) == [3, 4, 5, 6, 7]

    def test_resize_stays_pinned_at_end(self):
        viewport = Viewport(height=10)
        viewport.on_data_changed(100, streaming=False)
        viewport.resize(20)
        assert viewport.offset == 80

    def test_reset(self):
        viewport = Viewport(height=10)
        viewport.on_data_changed(100, streaming=False)
        viewport.scroll_to_top()
        viewport.reset()
        assert viewport.on_data_changed(40, streaming=False)
        assert viewport.offset == 30

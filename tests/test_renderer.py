import tempfile
import unittest
from pathlib import Path

from mystic_habits.charts.renderer import (
    AxisRange,
    ChartStyle,
    bar_dual,
    label_stride,
    line_chart,
    nice_range,
    round_half_up,
)
from mystic_habits.charts.surface import RecordingSurface, SvgSurface
from mystic_habits.utils.datetime_utils import trailing_days

DAYS3 = ["2025-06-11", "2025-06-12", "2025-06-13"]


class TestAxisMath(unittest.TestCase):
    def test_round_half_up(self) -> None:
        self.assertEqual(round_half_up(0.5), 1)
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(0.25), 0)

    def test_nice_range(self) -> None:
        self.assertEqual(nice_range(0, 1), AxisRange(0, 1, 1))
        self.assertEqual(nice_range(0, 0), AxisRange(0, 1, 1))
        self.assertEqual(nice_range(0, 10), AxisRange(0, 12, 3))
        self.assertEqual(nice_range(0, 10).ticks, [0, 3, 6, 9, 12])
        self.assertEqual(nice_range(0, 40), AxisRange(0, 40, 10))

    def test_label_stride(self) -> None:
        self.assertEqual(label_stride(0), 1)
        self.assertEqual(label_stride(5), 1)
        self.assertEqual(label_stride(60), 10)
        self.assertEqual(label_stride(61), 11)


class TestLineChart(unittest.TestCase):
    def test_flat_zero_series_keeps_visible_axis(self) -> None:
        layout = line_chart(RecordingSurface(300, 200), [0, 0, 0], DAYS3)
        self.assertEqual(layout.axis, AxisRange(0, 1, 1))
        self.assertGreaterEqual(layout.axis.max, 1)

    def test_flat_five_series(self) -> None:
        layout = line_chart(RecordingSurface(300, 200), [5, 5, 5], DAYS3)
        self.assertEqual(layout.axis, AxisRange(0, 5, 1))
        self.assertEqual([label for _, label in layout.y_labels], ["0", "1", "2", "3", "4", "5"])

    def test_point_mapping(self) -> None:
        surface = RecordingSurface(200, 100)
        layout = line_chart(surface, [0, 1], DAYS3[:2])
        self.assertEqual(layout.points, [(36, 64), (164, 36)])
        self.assertEqual(len(surface.of_kind("polyline")), 1)
        self.assertEqual(len(surface.of_kind("circle")), 2)

    def test_empty_series(self) -> None:
        surface = RecordingSurface(300, 200)
        layout = line_chart(surface, [], [])
        self.assertEqual(layout.points, [])
        self.assertEqual(layout.x_labels, [])
        self.assertEqual(surface.of_kind("polyline"), [])
        self.assertEqual(surface.calls[0], ("clear", 0, 0, 300, 200))

    def test_single_point(self) -> None:
        layout = line_chart(RecordingSurface(300, 200), [3], DAYS3[:1])
        self.assertEqual(layout.points[0][0], 36)

    def test_overlay_shares_axis(self) -> None:
        surface = RecordingSurface(300, 200)
        style = ChartStyle(color="#111111", overlay_color="#222222")
        layout = line_chart(surface, [1, 2, 1], DAYS3, style, overlay=[8, 8, 8])
        self.assertEqual(layout.axis, nice_range(0, 8))
        polylines = surface.of_kind("polyline")
        self.assertEqual([p[2] for p in polylines], ["#111111", "#222222"])
        self.assertEqual(len(surface.of_kind("circle")), 3)

    def test_no_discs_when_point_is_zero(self) -> None:
        surface = RecordingSurface(300, 200)
        line_chart(surface, [1, 2, 3], DAYS3, ChartStyle(point=0))
        self.assertEqual(surface.of_kind("circle"), [])

    def test_x_labels_are_limited(self) -> None:
        days = trailing_days("2025-06-13", 60)
        layout = line_chart(RecordingSurface(1680, 220), [1] * 60, days)
        self.assertEqual(len(layout.x_labels), 6)
        self.assertEqual(layout.x_labels[0][1], days[0][5:])

    def test_rendering_is_deterministic(self) -> None:
        first, second = RecordingSurface(400, 220), RecordingSurface(400, 220)
        line_chart(first, [3, 1, 4], DAYS3, overlay=[2, 2, 2])
        line_chart(second, [3, 1, 4], DAYS3, overlay=[2, 2, 2])
        self.assertEqual(first.calls, second.calls)

    def test_redraw_clears_surface(self) -> None:
        surface = RecordingSurface(300, 200)
        line_chart(surface, [1, 2, 3], DAYS3)
        count = len(surface.calls)
        line_chart(surface, [1, 2, 3], DAYS3)
        self.assertEqual(len(surface.calls), count)


class TestBarDual(unittest.TestCase):
    def test_geometry(self) -> None:
        surface = RecordingSurface(236, 100)
        layout = bar_dual(surface, [2, 0], [1, 4], DAYS3[:2])

        self.assertEqual(layout.axis, AxisRange(0, 4, 1))
        slot = (236 - 72) / 2
        bar_w = slot * 0.36
        for i, (a, b) in enumerate(zip(layout.bars_a, layout.bars_b)):
            center = 36 + (i + 0.5) * slot
            self.assertAlmostEqual(a[0], center - 2 - bar_w)
            self.assertAlmostEqual(b[0], center + 2)
            self.assertAlmostEqual(a[2], bar_w)
            self.assertLess(a[0] + a[2], center)
            self.assertGreater(b[0], center)

        self.assertAlmostEqual(layout.bars_a[0][3], 14)
        self.assertAlmostEqual(layout.bars_a[1][3], 0)
        self.assertAlmostEqual(layout.bars_b[1][1], 36)
        self.assertAlmostEqual(layout.bars_b[1][3], 28)
        self.assertEqual(len(surface.of_kind("rect")), 4)

    def test_all_zero_bars(self) -> None:
        layout = bar_dual(RecordingSurface(300, 200), [0, 0, 0], [0, 0, 0], DAYS3)
        self.assertEqual(layout.axis, AxisRange(0, 1, 1))

    def test_equal_values_keep_full_height_bars(self) -> None:
        layout = bar_dual(RecordingSurface(400, 200), [3, 3, 3], [3, 3, 3], DAYS3)
        self.assertEqual(layout.axis, AxisRange(0, 3, 1))
        for bar in layout.bars_a + layout.bars_b:
            self.assertGreater(bar[3], 0)
            self.assertAlmostEqual(bar[3], 200 - 2 * 36)

    def test_empty_bars(self) -> None:
        surface = RecordingSurface(300, 200)
        layout = bar_dual(surface, [], [], [])
        self.assertEqual(layout.bars_a, [])
        self.assertEqual(surface.of_kind("rect"), [])


class TestSvgSurface(unittest.TestCase):
    def test_svg_document(self) -> None:
        surface = SvgSurface(300, 200, background="#0b0f1a")
        line_chart(surface, [1, 2, 3], DAYS3)
        svg = surface.to_svg()
        self.assertTrue(svg.startswith('<svg xmlns="http://www.w3.org/2000/svg" width="300" height="200"'))
        self.assertIn("<polyline", svg)
        self.assertIn(">06-13</text>", svg)
        self.assertIn('fill="#0b0f1a"', svg)

    def test_text_is_escaped(self) -> None:
        surface = SvgSurface(10, 10)
        surface.text(0, 0, "<a&b>", "#fff")
        self.assertIn("&lt;a&amp;b&gt;", surface.to_svg())

    def test_negative_rect_is_normalized(self) -> None:
        surface = SvgSurface(10, 10)
        surface.fill_rect(0, 10, 5, -4, "#fff", radius=4)
        self.assertEqual(surface.elements[-1], '<rect x="0" y="6" width="5" height="4" rx="2" fill="#fff"/>')

    def test_save(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            surface = SvgSurface(50, 50)
            bar_dual(surface, [1], [2], DAYS3[:1])
            path = surface.save(Path(tmp) / "out" / "tasks.svg")
            self.assertTrue(path.read_text(encoding="utf-8").rstrip().endswith("</svg>"))


if __name__ == "__main__":
    unittest.main(verbosity=2)

import unittest

from tow_invoice.config import LAYOUT_MIN_HEIGHT_PX, LAYOUT_WIDTH_PX
from tow_invoice.pagination import A4, POLICY_FIT, POLICY_TILE, estimate_page_count, plan_pages


class PaginationTests(unittest.TestCase):
    def test_image_that_fits_uses_one_full_width_page(self) -> None:
        plan = plan_pages(794, 1122, A4, POLICY_TILE)

        self.assertEqual(plan.page_count, 1)
        placement = plan.placements[0]
        self.assertEqual((placement.x, placement.y), (0.0, 0.0))
        self.assertAlmostEqual(placement.width, 210.0)
        self.assertAlmostEqual(placement.height, 1122 * 210.0 / 794)
        self.assertLessEqual(placement.height, 297.0)

    def test_minimum_height_layout_stays_on_one_page_at_common_scales(self) -> None:
        for scale in (1.0, 1.25, 1.5, 2.0):
            width = int(round(LAYOUT_WIDTH_PX * scale))
            height = int(round(LAYOUT_MIN_HEIGHT_PX * scale))
            with self.subTest(scale=scale):
                self.assertEqual(estimate_page_count(width, height, A4, POLICY_TILE), 1)
                placement = plan_pages(width, height, A4, POLICY_FIT).placements[0]
                self.assertEqual(placement.x, 0.0)
                self.assertAlmostEqual(placement.width, 210.0)

    def test_exact_page_height_is_one_page(self) -> None:
        self.assertEqual(estimate_page_count(210, 297, A4, POLICY_TILE), 1)

    def test_fit_shrinks_tall_image_onto_one_centered_page(self) -> None:
        plan = plan_pages(100, 300, A4, POLICY_FIT)

        self.assertEqual(plan.page_count, 1)
        placement = plan.placements[0]
        self.assertAlmostEqual(placement.height, 297.0)
        self.assertAlmostEqual(placement.width, 99.0)
        self.assertAlmostEqual(placement.x, (210.0 - 99.0) / 2)
        self.assertEqual(placement.y, 0.0)

    def test_tile_page_count_is_ceiling_of_height_ratio(self) -> None:
        # 100 px wide -> 2.1 mm per px, so 297 mm is ~141.43 px.
        self.assertEqual(estimate_page_count(100, 142, A4, POLICY_TILE), 2)
        self.assertEqual(estimate_page_count(100, 282, A4, POLICY_TILE), 2)
        self.assertEqual(estimate_page_count(100, 300, A4, POLICY_TILE), 3)

    def test_tile_offsets_step_by_page_height(self) -> None:
        plan = plan_pages(100, 300, A4, POLICY_TILE)

        self.assertEqual([p.y for p in plan.placements], [0.0, -297.0, -594.0])
        self.assertTrue(all(p.height == plan.placements[0].height for p in plan.placements))

    def test_rejects_bad_input(self) -> None:
        with self.assertRaises(ValueError):
            plan_pages(0, 100)
        with self.assertRaises(ValueError):
            plan_pages(100, 100, A4, "spread")


if __name__ == "__main__":
    unittest.main()

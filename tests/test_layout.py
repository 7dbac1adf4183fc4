import unittest

from tow_invoice.layout import BoxElement, ImageElement, TextElement, build_layout
from tow_invoice.models import CompanyInfo, Job

from tests.helpers import FixedWidthFonts, company_payload, job_payload


class LayoutTests(unittest.TestCase):
    def build(self, job: dict, company: dict):
        return build_layout(
            Job.from_dict(job),
            CompanyInfo.from_dict(company),
            "INV-OB-100-1234",
            "Oct 19, 2026",
            fonts=FixedWidthFonts(),
        )

    def test_layout_has_fixed_width_and_a4_minimum_height(self) -> None:
        layout = self.build(job_payload(), company_payload())

        self.assertEqual(layout.width, 794)
        self.assertGreaterEqual(layout.height, 1122)
        self.assertEqual(layout.background, "#ffffff")

    def test_layout_carries_invoice_fields(self) -> None:
        texts = self.build(job_payload(), company_payload()).texts()

        for expected in (
            "INVOICE",
            "INV-OB-100-1234",
            "Oct 19, 2026",
            "J. Doe",
            "OB Number: OB-100",
            "R450.00",
            "Thank you for choosing Cape Tow Services!",
        ):
            self.assertIn(expected, texts)
        self.assertIn("DROPOFF LOCATION", texts)

    def test_job_date_is_shown_formatted_when_present(self) -> None:
        texts = self.build(job_payload(date="2026-03-14"), company_payload()).texts()

        self.assertIn("Date:", texts)
        self.assertIn("Mar 14, 2026", texts)

        undated = self.build(job_payload(date=""), company_payload()).texts()
        self.assertNotIn("Date:", undated)

    def test_missing_price_is_flagged_for_manual_entry(self) -> None:
        texts = self.build(job_payload(price=None), company_payload()).texts()

        self.assertIn("R [Manual]", texts)
        self.assertIn("* Amount needs to be entered *", texts)

    def test_optional_sections_follow_the_data(self) -> None:
        bare = self.build(job_payload(dropoffLocation="", notes=""), company_payload())
        self.assertNotIn("DROPOFF LOCATION", bare.texts())
        self.assertNotIn("NOTES", bare.texts())
        self.assertNotIn("PAYMENT DETAILS", bare.texts())
        self.assertEqual(bare.images(), [])

        full = self.build(
            job_payload(notes="Keys left with security"),
            company_payload(
                bankName="FNB",
                accountNumber="62000000000",
                sortCode="250655",
                logoUrl="https://cdn.example/logo.png",
            ),
        )
        texts = full.texts()
        self.assertIn("NOTES", texts)
        self.assertIn("Keys left with security", texts)
        self.assertIn("PAYMENT DETAILS", texts)
        self.assertIn("62000000000", texts)
        self.assertEqual([img.source for img in full.images()], ["https://cdn.example/logo.png"])

    def test_long_notes_grow_the_page(self) -> None:
        notes = "\n".join(f"Line {index} of the recovery notes" for index in range(80))
        layout = self.build(job_payload(notes=notes), company_payload())

        self.assertGreater(layout.height, 1122)
        bottoms = [
            el.y + el.height for el in layout.elements if isinstance(el, (BoxElement, ImageElement))
        ]
        self.assertLessEqual(max(bottoms), layout.height)
        self.assertTrue(all(isinstance(el, (TextElement, BoxElement, ImageElement)) for el in layout.elements))


if __name__ == "__main__":
    unittest.main()

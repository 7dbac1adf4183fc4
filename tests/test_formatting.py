import unittest
from datetime import date

from tow_invoice.formatting import (
    assign_invoice_number,
    derive_invoice_number,
    download_filename,
    fmt_amount_due,
    fmt_date,
    invoice_date,
    wrap_text,
)
from tow_invoice.models import CompanyInfo, Job

from tests.helpers import FixedWidthFonts, company_payload, job_payload


class FormattingTests(unittest.TestCase):
    def test_fmt_date_formats_valid_dates(self) -> None:
        self.assertEqual(fmt_date("2026-01-15"), "Jan 15, 2026")

    def test_fmt_date_returns_original_for_invalid_input(self) -> None:
        raw = "not-a-date"
        self.assertEqual(fmt_date(raw), raw)

    def test_invoice_date_uses_given_day(self) -> None:
        self.assertEqual(invoice_date(date(2026, 10, 19)), "Oct 19, 2026")

    def test_fmt_amount_due_marks_missing_price_as_manual(self) -> None:
        self.assertEqual(fmt_amount_due(450), "R450.00")
        self.assertEqual(fmt_amount_due(None), "R [Manual]")
        self.assertEqual(fmt_amount_due(0), "R [Manual]")

    def test_wrap_text_breaks_on_words_and_long_tokens(self) -> None:
        fonts = FixedWidthFonts()
        # 10px font: each character is 5px wide, so 50px holds 10 characters.
        self.assertEqual(wrap_text(fonts, "tow truck on route", 50, 10), ["tow truck", "on route"])
        self.assertEqual(wrap_text(fonts, "abcdefghijklmnop", 50, 10), ["abcdefghij", "klmnop"])
        self.assertEqual(wrap_text(fonts, "", 50, 10), [])


class InvoiceNumberTests(unittest.TestCase):
    def test_synthesizes_number_from_ob_number_and_job_id(self) -> None:
        job = Job.from_dict(job_payload())
        self.assertEqual(derive_invoice_number(job), "INV-OB-100-1234")

    def test_prefers_assigned_number(self) -> None:
        job = Job.from_dict(job_payload(invoiceNumber="INV-1007"))
        self.assertEqual(derive_invoice_number(job), "INV-1007")

    def test_download_filename_pattern(self) -> None:
        self.assertEqual(download_filename("INV-OB-100-1234"), "Invoice-INV-OB-100-1234.pdf")
        self.assertEqual(download_filename("INV/7"), "Invoice-INV7.pdf")

    def test_assign_allocates_next_company_number(self) -> None:
        job = Job.from_dict(job_payload())
        company = CompanyInfo.from_dict(company_payload(nextInvoiceNumber=1042))

        updated_job, updated_company = assign_invoice_number(job, company)

        self.assertEqual(updated_job.invoice_number, "INV-1042")
        self.assertTrue(updated_job.invoice_generated)
        self.assertEqual(updated_company.next_invoice_number, 1043)
        self.assertIsNone(job.invoice_number)

    def test_assign_defaults_to_first_number(self) -> None:
        job = Job.from_dict(job_payload())
        company = CompanyInfo.from_dict(company_payload())

        updated_job, updated_company = assign_invoice_number(job, company)

        self.assertEqual(updated_job.invoice_number, "INV-1001")
        self.assertEqual(updated_company.next_invoice_number, 1002)

    def test_assign_keeps_generated_number(self) -> None:
        job = Job.from_dict(job_payload(invoiceGenerated=True, invoiceNumber="INV-1001"))
        company = CompanyInfo.from_dict(company_payload(nextInvoiceNumber=1010))

        self.assertEqual(assign_invoice_number(job, company), (job, company))


if __name__ == "__main__":
    unittest.main()

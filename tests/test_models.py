import base64
import unittest

from tow_invoice.models import ArchivedDocument, DocumentKind, InvoiceRecord, Job, new_record_id


def data_uri(mime: str, payload: bytes) -> str:
    return f"data:{mime};base64,{base64.b64encode(payload).decode('ascii')}"


class ArchivedDocumentTests(unittest.TestCase):
    def test_untagged_pdf_uri_is_paginated(self) -> None:
        doc = ArchivedDocument.from_data_uri(data_uri("application/pdf", b"%PDF-1.3 body"))

        self.assertIs(doc.kind, DocumentKind.PAGINATED)
        self.assertEqual(doc.data, b"%PDF-1.3 body")

    def test_untagged_image_uri_is_raster(self) -> None:
        doc = ArchivedDocument.from_data_uri(data_uri("image/jpeg", b"\xff\xd8\xff"))

        self.assertIs(doc.kind, DocumentKind.RASTER)
        self.assertEqual(doc.mime, "image/jpeg")

    def test_explicit_tag_wins_over_media_type(self) -> None:
        doc = ArchivedDocument.from_data_uri(data_uri("application/octet-stream", b"%PDF"), "document")

        self.assertIs(doc.kind, DocumentKind.PAGINATED)

    def test_unrecognised_payloads_are_unknown_and_preserved(self) -> None:
        for raw in ("garbage", "data:text/plain;base64,aGk=", "data:image/png;base64,***", None):
            with self.subTest(raw=raw):
                doc = ArchivedDocument.from_data_uri(raw)
                self.assertIs(doc.kind, DocumentKind.UNKNOWN)
                self.assertEqual(doc.to_data_uri(), raw or "")


class InvoiceRecordTests(unittest.TestCase):
    def test_serializes_with_store_field_names(self) -> None:
        record = InvoiceRecord(
            id=1700000000000,
            invoice_number="INV-1001",
            date="Oct 19, 2026",
            customer_name="J. Doe",
            ob_number="OB-100",
            amount=450.0,
            document=ArchivedDocument.raster(b"\xff\xd8\xff"),
        )

        data = record.to_dict()

        self.assertEqual(
            sorted(data),
            ["amount", "customerName", "date", "id", "invoiceNumber", "kind", "obNumber", "pdfData"],
        )
        self.assertTrue(data["pdfData"].startswith("data:image/jpeg;base64,"))
        self.assertEqual(InvoiceRecord.from_dict(data), record)
        self.assertNotIn("pdfData", record.summary())

    def test_missing_amount_stays_none(self) -> None:
        record = InvoiceRecord.from_dict({"id": 5, "invoiceNumber": "INV-1", "pdfData": "x"})

        self.assertIsNone(record.amount)
        self.assertIs(record.document.kind, DocumentKind.UNKNOWN)

    def test_record_ids_are_unique(self) -> None:
        ids = [new_record_id() for _ in range(50)]
        self.assertEqual(len(set(ids)), 50)


class JobTests(unittest.TestCase):
    def test_parses_camel_case_payload(self) -> None:
        job = Job.from_dict({"id": 17, "obNumber": " OB-9 ", "customerName": "A", "price": "120.5", "notes": " "})

        self.assertEqual(job.id, "17")
        self.assertEqual(job.ob_number, "OB-9")
        self.assertEqual(job.price, 120.5)
        self.assertIsNone(job.notes)
        self.assertIsNone(job.invoice_number)


if __name__ == "__main__":
    unittest.main()

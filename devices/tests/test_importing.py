"""
Bulk import row extraction tests
"""

from devices.importing import ImportRow, extract_row


class TestExtractRow:

    def test_canonical_headers(self):
        row = extract_row({
            "sn_no": " GRIPID1 ", "imei_1": "111", "imei_2": "222",
            "status": "In Stock", "note": "first",
        })
        assert row == ImportRow("GRIPID1", "111", "222", "In Stock", "first")

    def test_alternative_spellings(self):
        row = extract_row({"Serial": "GRIPID2", "IMEI1": "333", "IMEI2": "", "Status": "Shipped"})
        assert row.serial == "GRIPID2"
        assert row.imei_1 == "333"
        assert row.imei_2 == ""
        assert row.status == "Shipped"
        assert row.note == ""

    def test_first_non_empty_alias_wins(self):
        row = extract_row({"sn_no": "  ", "SN": "", "Serial": "GRIPID3", "sn": "OTHER"})
        assert row.serial == "GRIPID3"

    def test_numeric_cells(self):
        row = extract_row({"SN": 12345, "IMEI1": 356938035643809.0})
        assert row.serial == "12345"
        assert row.imei_1 == "356938035643809"

    def test_header_whitespace_ignored(self):
        row = extract_row({" SN ": "GRIPID4"})
        assert row.serial == "GRIPID4"

    def test_missing_serial(self):
        row = extract_row({"IMEI1": "444", "Status": "In Stock"})
        assert row.serial == ""

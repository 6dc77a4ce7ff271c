import io

import pytest

from parsing import (
    ParseError,
    UploadError,
    coerce_cell,
    decode_payload,
    iter_parse_batches,
    load_records,
    parse_csv_chunked,
    parse_csv_text,
    read_header,
    read_upload,
)


class DummyUpload(io.BytesIO):
    def __init__(self, name: str, content: bytes) -> None:
        super().__init__(content)
        self.name = name


def test_coerce_cell_numbers_and_text() -> None:
    assert coerce_cell("1000") == 1000
    assert isinstance(coerce_cell("1000"), int)
    assert coerce_cell(" 12.5 ") == 12.5
    assert coerce_cell("Skin A") == "Skin A"
    assert coerce_cell("") == ""
    assert coerce_cell("inf") == "inf"
    assert coerce_cell("1e3") == 1000.0


def test_parse_csv_text_builds_records_and_skips_blank_lines() -> None:
    text = "Date,Payment Tier,Consumption Amount\n2025-04-17,Whale,1000\n\n2025-04-18,FreeUser,200\n"

    records = parse_csv_text(text)

    assert len(records) == 2
    assert records[0]["Date"] == "2025-04-17"
    assert records[0]["Payment Tier"] == "Whale"
    assert records[1]["Consumption Amount"] == 200


def test_parse_csv_text_pads_short_rows_with_empty_strings() -> None:
    records = parse_csv_text("A,B,C\n1,2\n")
    assert records[0]["C"] == ""


def test_records_are_read_only() -> None:
    records = parse_csv_text("A,B\n1,2\n")
    with pytest.raises(TypeError):
        records[0]["A"] = 5  # type: ignore[index]


def test_parse_rejects_empty_text_and_empty_header() -> None:
    with pytest.raises(ParseError):
        parse_csv_text("")
    with pytest.raises(ParseError):
        parse_csv_text(" ,, \n1,2,3\n")


def test_header_only_yields_no_records() -> None:
    assert parse_csv_text("Date,Amount\n") == []


def test_batches_report_progress_ending_at_100() -> None:
    body = "\n".join(f"2025-04-{day:02d},{day}" for day in range(1, 11))
    text = "Date,Amount\n" + body

    batches = list(iter_parse_batches(text, batch_size=3))

    assert [len(records) for records, _ in batches] == [3, 3, 3, 1]
    percents = [percent for _, percent in batches]
    assert percents == sorted(percents)
    assert percents[-1] == 100


def test_parse_csv_chunked_calls_progress_monotonically() -> None:
    text = "Date,Amount\n" + "\n".join(f"2025-04-17,{n}" for n in range(25))
    seen: list[int] = []

    records = parse_csv_chunked(text, on_progress=seen.append, batch_size=10)

    assert len(records) == 25
    assert seen == sorted(seen)
    assert seen[-1] == 100


def test_decode_payload_accepts_bom_and_gb18030() -> None:
    assert decode_payload("\ufeffDate,Amount".encode("utf-8")).startswith("Date")
    assert decode_payload("日期,天玉消耗额".encode("gb18030")) == "日期,天玉消耗额"


def test_read_upload_rejects_unsupported_extension() -> None:
    with pytest.raises(UploadError):
        read_upload(DummyUpload("export.xlsx", b"Date\n"))


def test_load_records_reads_named_upload() -> None:
    upload = DummyUpload("export.csv", "Date,Amount\n2025-04-17,5\n".encode("utf-8"))
    records = load_records(upload)
    assert records[0]["Amount"] == 5


def test_read_header_skips_leading_blank_lines() -> None:
    assert read_header("\n\n Date , Amount \n2025-04-17,5\n") == ["Date", "Amount"]


def test_long_rows_are_truncated_to_header_width() -> None:
    records = parse_csv_text("Date,Amount\n2025-04-17,5,extra,cells\n2025-04-18,6\n")
    assert dict(records[0]) == {"Date": "2025-04-17", "Amount": 5}
    assert dict(records[1]) == {"Date": "2025-04-18", "Amount": 6}


def test_quotes_are_kept_literally() -> None:
    records = parse_csv_text('Item,Amount\n"Skin, A",5\n')
    assert records[0]["Item"] == '"Skin'
    assert records[0]["Amount"] == 'A"'


def test_crlf_export_parses_numbers() -> None:
    records = parse_csv_text("Date,Amount\r\n2025-04-17,12.5\r\n2025-04-18,3\r\n")
    assert [record["Amount"] for record in records] == [12.5, 3]

"""End-to-end tests for the parse operations.

WHY: These are the calls every consumer uses. They must produce the
same records for the same table in either layout, keep quoted content
intact, tolerate unknown columns, honor the schema gate, and stop
promptly when the caller cancels.

HOW: Tests drive parse_horizontal()/parse_vertical() (and the file
variants) through drain() or asyncio.run(), using the sample tables
from conftest.py plus small inline documents.

RULES:
- Tests never depend on the default mmap threshold; they pass one
- Cancellation tests create the asyncio.Event inside the running loop
"""

import asyncio
import logging
from datetime import date

import pytest

from conftest import drain
from vertical_csv.core.ir import Address, Project, Record
from vertical_csv.core.parser import (
    FILE_LAYOUTS,
    LAYOUTS,
    ParseCancelled,
    VerticalCsvError,
    collect,
    parse_horizontal,
    parse_horizontal_file,
    parse_path,
    parse_text,
    parse_vertical,
    parse_vertical_file,
)
from vertical_csv.core.schema import V1, V4, SchemaVersion

ALICE = Record(
    name="Alice",
    age=30,
    email="a@x.com",
    phone="555-0100",
    skills=["Go", "", ""],
    address=Address(city="Paris", zip_code="75001"),
    projects=[Project(name="Apollo", start_date=date(2020, 1, 15))],
    notes="Line one\nline two",
)

BOB = Record(
    name="Bob",
    age=41,
    email="b@x.com",
    skills=["Rust", "", "SQL"],
    projects=[Project()],
)


def _many_rows(count):
    lines = ["Name,Age,Email"]
    lines.extend("P{0},{1},p{0}@x.com".format(i, 20 + i) for i in range(count))
    return "\n".join(lines) + "\n"


class TestScenario:
    """The Alice/Bob transposed example with a sparse Skills[2] row."""

    def test_vertical_scenario(self, scenario_vertical):
        records = drain(parse_vertical(scenario_vertical, V1))
        assert records == [
            Record(name="Alice", age=30, email="a@x.com", skills=["Go", "", ""]),
            Record(name="Bob", age=41, email="b@x.com", skills=["Rust", "", "SQL"]),
        ]

    def test_same_result_under_v4(self, scenario_vertical):
        expected = drain(parse_vertical(scenario_vertical, V1))
        assert drain(parse_vertical(scenario_vertical, V4)) == expected


class TestLayoutEquivalence:

    def test_horizontal_people(self, people_horizontal):
        assert drain(parse_horizontal(people_horizontal, V4)) == [ALICE, BOB]

    def test_vertical_people(self, people_vertical):
        assert drain(parse_vertical(people_vertical, V4)) == [ALICE, BOB]

    def test_crlf_and_bom(self, people_horizontal):
        data = b"\xef\xbb\xbf" + people_horizontal.replace("\n", "\r\n").encode("utf-8")
        records = drain(parse_horizontal(data, V4))
        assert [r.name for r in records] == ["Alice", "Bob"]
        assert records[0].notes == "Line one\r\nline two"

    def test_leading_blank_lines_before_header(self, people_horizontal):
        assert drain(parse_horizontal("\n\n" + people_horizontal, V4)) == [ALICE, BOB]

    def test_horizontal_preserves_row_order(self):
        records = drain(parse_horizontal(_many_rows(5), V1))
        assert [r.name for r in records] == ["P0", "P1", "P2", "P3", "P4"]

    def test_empty_input(self):
        assert drain(parse_horizontal("", V1)) == []
        assert drain(parse_vertical("", V1)) == []


class TestOversizedIndices:

    def test_huge_index_is_dropped_not_allocated(self):
        text = "Name,Age,Email,Skills[4000000000],Skills[1]\nA,30,a@x,Go,SQL\n"
        records = parse_text(text, V1)
        assert records == [Record(name="A", age=30, email="a@x", skills=["", "SQL"])]


class TestQuotingFidelity:

    def test_commas_quotes_and_newlines_survive(self):
        text = (
            "Name,Age,Email,Notes\n"
            '"Doe, John ""JJ""",50,jj@x.com,"first line\nsecond, with \\"quotes\\""\n'
        )
        records = drain(parse_horizontal(text, V1))
        assert len(records) == 1
        assert records[0].name == 'Doe, John "JJ"'
        assert records[0].notes == 'first line\nsecond, with "quotes"'

    def test_same_values_in_vertical_layout(self):
        text = (
            'Name,"Doe, John ""JJ"""\n'
            "Age,50\n"
            "Email,jj@x.com\n"
            'Notes,"first line\nsecond"\n'
        )
        record = drain(parse_vertical(text, V1))[0]
        assert record.name == 'Doe, John "JJ"'
        assert record.notes == "first line\nsecond"


class TestUnknownFieldTolerance:

    def test_extra_columns_do_not_change_records(self):
        plain = "Name,Age,Email\nAlice,30,a@x.com\n"
        widened = (
            "Name,Salary,Age,Email,Address.Country,Projects[0].Budget\n"
            "Alice,9000,30,a@x.com,FR,12\n"
        )
        expected = drain(parse_horizontal(plain, V4))
        assert expected == [Record(name="Alice", age=30, email="a@x.com")]
        assert drain(parse_horizontal(widened, V4)) == expected

    def test_unknown_rows_in_vertical_layout(self, people_vertical):
        text = "Salary,1,2,3\n" + people_vertical + "Projects[0].Budget,9,9,9\n"
        assert drain(parse_vertical(text, V4)) == [ALICE, BOB]


class TestSchemaGate:

    def test_rejected_records_are_dropped(self, people_vertical):
        names = [r.name for r in drain(parse_vertical(people_vertical, V1))]
        assert "Carol" not in names

    def test_on_reject_receives_rejected_records(self, people_horizontal):
        rejected = []
        records = drain(parse_horizontal(people_horizontal, V1, on_reject=rejected.append))
        assert [r.name for r in records] == ["Alice", "Bob"]
        assert [r.name for r in rejected] == ["Carol"]
        assert rejected[0].age == 0

    def test_every_yielded_record_satisfies_required_fields(self):
        text = "Name,Age,Email\nA,1,a@x\nB,abc,b@x\n,3,c@x\nD,4,\nE,-5,e@x\n"
        records = drain(parse_horizontal(text, V1))
        assert [r.name for r in records] == ["A"]

    def test_gate_does_not_modify_records(self, people_horizontal):
        rejected = []
        records = drain(parse_horizontal(people_horizontal, V1, on_reject=rejected.append))
        again = drain(parse_horizontal(people_horizontal, V1))
        assert records == again == [ALICE, BOB]
        assert rejected[0] == Record(
            name="Carol", email="c@x.com", skills=["", "", ""], projects=[Project()],
        )

    def test_custom_schema_requiring_skills(self, scenario_vertical):
        schema = SchemaVersion(version=9, required_fields=("Name", "Skills"))
        text = scenario_vertical + "Languages[0],en\n"
        assert len(drain(parse_vertical(text, schema))) == 2
        no_skills = "Name,Ada\nAge,36\n"
        assert drain(parse_vertical(no_skills, schema)) == []

    def test_rejections_are_not_logged(self, people_horizontal, caplog):
        caplog.set_level(logging.DEBUG, logger="vertical_csv")
        drain(parse_horizontal(people_horizontal, V1))
        assert "Carol" not in caplog.text


class TestCancellation:

    def test_horizontal_stops_after_k_records(self):
        async def _run():
            cancel = asyncio.Event()
            received = []
            with pytest.raises(ParseCancelled) as excinfo:
                async for record in parse_horizontal(_many_rows(10), V1, cancel=cancel):
                    received.append(record)
                    if len(received) == 2:
                        cancel.set()
            return received, excinfo.value

        received, error = asyncio.run(_run())
        assert [r.name for r in received] == ["P0", "P1"]
        assert error.records_emitted == 2
        assert isinstance(error, VerticalCsvError)

    def test_vertical_cancelled_before_end_yields_nothing(self, people_vertical):
        async def _run():
            cancel = asyncio.Event()
            cancel.set()
            received = []
            with pytest.raises(ParseCancelled) as excinfo:
                async for record in parse_vertical(people_vertical, V1, cancel=cancel):
                    received.append(record)
            return received, excinfo.value

        received, error = asyncio.run(_run())
        assert received == []
        assert error.records_emitted == 0

    def test_vertical_cancelled_between_records(self, people_vertical):
        async def _run():
            cancel = asyncio.Event()
            received = []
            with pytest.raises(ParseCancelled) as excinfo:
                async for record in parse_vertical(people_vertical, V1, cancel=cancel):
                    received.append(record)
                    cancel.set()
            return received, excinfo.value

        received, error = asyncio.run(_run())
        assert [r.name for r in received] == ["Alice"]
        assert error.records_emitted == 1

    def test_unset_event_changes_nothing(self, people_horizontal):
        async def _run():
            cancel = asyncio.Event()
            return await collect(parse_horizontal(people_horizontal, V4, cancel=cancel))

        assert asyncio.run(_run()) == [ALICE, BOB]


class TestFileParsing:

    @pytest.mark.parametrize("layout", ["horizontal", "vertical"])
    def test_mapped_and_buffered_reads_agree(self, people_files, layout):
        path = people_files[layout]
        mapped = drain(FILE_LAYOUTS[layout](path, V4, threshold=1))
        buffered = drain(FILE_LAYOUTS[layout](path, V4, threshold=1 << 30))
        assert mapped == buffered == [ALICE, BOB]

    def test_file_variants_match_stream_variants(self, people_files, people_vertical):
        from_file = drain(parse_vertical_file(people_files["vertical"], V4, threshold=1))
        assert from_file == drain(parse_vertical(people_vertical, V4))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            drain(parse_horizontal_file(tmp_path / "missing.csv", V1))

    def test_file_cancellation(self, people_files):
        async def _run():
            cancel = asyncio.Event()
            cancel.set()
            return await collect(
                parse_horizontal_file(people_files["horizontal"], V1, cancel=cancel)
            )

        with pytest.raises(ParseCancelled):
            asyncio.run(_run())

    def test_concurrent_parses_are_independent(self, people_files):
        async def _run():
            return await asyncio.gather(
                collect(parse_horizontal_file(people_files["horizontal"], V4, threshold=1)),
                collect(parse_vertical_file(people_files["vertical"], V4, threshold=1)),
                collect(parse_horizontal_file(people_files["horizontal"], V1)),
            )

        first, second, third = asyncio.run(_run())
        assert first == second == third == [ALICE, BOB]


class TestSyncHelpers:

    def test_parse_text(self, people_vertical):
        assert parse_text(people_vertical, V4, layout="vertical") == [ALICE, BOB]

    def test_parse_text_defaults_to_horizontal(self, people_horizontal):
        assert parse_text(people_horizontal, V4) == [ALICE, BOB]

    def test_parse_path(self, people_files):
        assert parse_path(people_files["horizontal"], V4) == [ALICE, BOB]

    def test_unknown_layout(self):
        with pytest.raises(ValueError, match="Unknown layout"):
            parse_text("Name\nAda\n", V1, layout="diagonal")

    def test_registries(self):
        assert LAYOUTS["horizontal"] is parse_horizontal
        assert FILE_LAYOUTS["vertical"] is parse_vertical_file


class TestLogging:

    def test_summary_logged_at_info(self, people_horizontal, caplog):
        caplog.set_level(logging.INFO, logger="vertical_csv.core.parser")
        drain(parse_horizontal(people_horizontal, V1))
        assert "2 record(s) accepted under schema version 1" in caplog.text

    def test_unrecognized_labels_logged_at_debug(self, caplog):
        caplog.set_level(logging.DEBUG, logger="vertical_csv.core.parser")
        drain(parse_horizontal("Name,Age,Email,Salary\nA,1,a@x,9\n", V1))
        assert "Ignoring unrecognized label 'Salary'" in caplog.text

    def test_undeclared_labels_logged_at_debug(self, caplog):
        caplog.set_level(logging.DEBUG, logger="vertical_csv.core.parser")
        drain(parse_horizontal("Name,Age,Email,Phone\nA,1,a@x,555\n", V1))
        assert "'Phone' is not declared by schema version 1" in caplog.text

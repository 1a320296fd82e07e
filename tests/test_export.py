import csv
import io
from datetime import date

from packages.leaderboard.export import export_filename, to_tabular

from factories import entry


def rows():
    return [
        entry("0xA", rank=1, account_value="1500.25", pnl="-20", roi="3.5", volume="1000000",
              last_updated="2024-05-01T00:00:00Z"),
        entry("0xB", rank=2, account_value="10", pnl="0", roi="0", volume="2000000.50",
              last_updated="2024-05-01T00:00:01Z"),
    ]


def test_header_and_row_layout():
    text = to_tabular(rows())
    lines = text.split("\n")
    assert lines[0] == "Rank,Wallet,Account Value,PNL,ROI,Volume,Last Updated"
    assert lines[1] == '1,"0xA",1500.25,-20,3.5,1000000,2024-05-01T00:00:00Z'
    assert text.endswith("\n")
    assert text.count("\n") == 3


def test_empty_export_is_just_the_header():
    assert to_tabular([]) == "Rank,Wallet,Account Value,PNL,ROI,Volume,Last Updated\n"


def test_resplit_reproduces_field_values():
    source = rows()
    parsed = list(csv.reader(io.StringIO(to_tabular(source))))[1:]
    assert len(parsed) == len(source)
    for fields, e in zip(parsed, source):
        assert fields == [str(e.rank), e.wallet, e.account_value, e.pnl, e.roi, e.volume, e.last_updated]


def test_wallet_with_delimiter_and_quote_stays_one_field():
    weird = entry('0x,"evil"', rank=3, roi="1")
    parsed = list(csv.reader(io.StringIO(to_tabular([weird]))))
    assert parsed[1][1] == '0x,"evil"'
    assert len(parsed[1]) == 7


def test_malformed_numeric_text_does_not_break_the_row():
    bad = entry("0xC", rank=4, roi="1,5", pnl="")
    parsed = list(csv.reader(io.StringIO(to_tabular([bad]))))
    assert len(parsed[1]) == 7
    assert parsed[1][3] == ""
    assert parsed[1][4] == "1,5"


def test_export_filename():
    assert export_filename("7d", date(2024, 5, 1)) == "leaderboard_7d_2024-05-01.csv"
    assert export_filename("all").startswith("leaderboard_all_")

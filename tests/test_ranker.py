import pytest

from packages.leaderboard.ranker import find_trader, view

from factories import entry


def wallets(rows):
    return [e.wallet for e in rows]


def test_sort_is_numeric_not_lexical():
    rows = [entry("0xA", roi="9"), entry("0xB", roi="10"), entry("0xC", roi="-100")]
    assert wallets(view(rows, "roi", "desc")) == ["0xB", "0xA", "0xC"]
    assert wallets(view(rows, "roi", "asc")) == ["0xC", "0xA", "0xB"]


@pytest.mark.parametrize("order", ["asc", "desc"])
def test_ties_break_by_wallet_ascending_regardless_of_input_order(order):
    a, b, c = entry("0xbb", roi="5"), entry("0xAA", roi="5.0"), entry("0xcc", roi="5")
    for rows in ([a, b, c], [c, b, a], [b, c, a]):
        assert wallets(view(rows, "roi", order)) == ["0xAA", "0xbb", "0xcc"]


def test_sort_by_account_value_and_volume():
    rows = [entry("0xA", account_value="100", volume="3"),
            entry("0xB", account_value="1000", volume="1"),
            entry("0xC", account_value="20.5", volume="2")]
    assert wallets(view(rows, "accountValue", "desc")) == ["0xB", "0xA", "0xC"]
    assert wallets(view(rows, "volume", "asc")) == ["0xB", "0xC", "0xA"]


def test_malformed_sort_values_go_last():
    rows = [entry("0xA", pnl="oops"), entry("0xB", pnl="1"), entry("0xC", pnl="2")]
    assert wallets(view(rows, "pnl", "desc")) == ["0xC", "0xB", "0xA"]
    assert wallets(view(rows, "pnl", "asc")) == ["0xB", "0xC", "0xA"]


def test_search_filters_case_insensitively_before_sorting():
    rows = [entry("0xABC1", roi="1"), entry("0xdef", roi="3"), entry("0x9abc", roi="2")]
    assert wallets(view(rows, "roi", "desc", "abc")) == ["0x9abc", "0xABC1"]


def test_empty_search_returns_everything():
    rows = [entry("0xA"), entry("0xB")]
    assert len(view(rows, "roi", "desc", "")) == 2


def test_no_matches_is_an_empty_view():
    assert view([entry("0xA")], "roi", "desc", "zzz") == []


def test_unknown_sort_key_or_order_raises():
    with pytest.raises(ValueError):
        view([], "sharpe", "desc")
    with pytest.raises(ValueError):
        view([], "roi", "sideways")


def test_find_trader_returns_first_match_in_given_order():
    rows = [entry("0x111"), entry("0xAbc2"), entry("0xabc3")]
    assert find_trader(rows, "ABC") == "0xAbc2"
    assert find_trader(rows, "nope") is None
    assert find_trader(rows, "") is None


def test_whitespace_search_is_matched_literally():
    rows = [entry("0xA"), entry("team wallet")]
    assert wallets(view(rows, "roi", "desc", " ")) == ["team wallet"]
    assert find_trader(rows, " ") == "team wallet"

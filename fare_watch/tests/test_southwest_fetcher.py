from datetime import date
from unittest.mock import Mock, patch

import pytest
import requests

from fare_watch.fare_parser import build_table
from fare_watch.models import FareRow, WatchEntry
from fare_watch.southwest_fetcher import (
    SearchProviderError,
    SouthwestFetcher,
    parse_results,
)


def make_page():
    return """
    <html><body>
    <table id="faresOutbound"><tbody>
      <tr>
        <td><span class="js-flight-performance"># 1234</span></td>
        <td><div class="product_price">$<span>329</span></div></td>
        <td><div class="product_price">$289</div></td>
        <td><div class="product_price">$129</div></td>
      </tr>
      <tr>
        <td><span class="js-flight-performance"># 0077 / 560</span></td>
        <td><div class="product_price">Sold out</div></td>
        <td><div class="product_price">$1,104</div></td>
      </tr>
      <tr><td>Ad banner</td></tr>
    </tbody></table>
    <table id="faresReturn"><tbody>
      <tr>
        <td><span class="js-flight-performance"># 456</span></td>
        <td><div class="product_price">$99</div></td>
      </tr>
    </tbody></table>
    </body></html>
    """


def test_parse_results_splits_legs():
    result = parse_results(make_page())

    assert len(result.outbound) == 3
    assert result.outbound[0].flight_text == "# 1234"
    assert len(result.outbound[0].price_tokens) == 3
    assert result.outbound[2].flight_text == ""
    assert build_table(result.outbound) == [
        FareRow("1234", 329),
        FareRow("1234", 289),
        FareRow("1234", 129),
        FareRow("0077", 1104),
    ]
    assert build_table(result.inbound) == [FareRow("456", 99)]


def test_page_without_tables_is_empty():
    result = parse_results("<html><body><p>Sorry, try again</p></body></html>")
    assert result.outbound == []
    assert result.inbound == []


@patch("requests.get")
def test_round_trip_search(mock_get):
    mock_get.return_value = Mock(status_code=200, text=make_page())

    fetcher = SouthwestFetcher(timeout=5)
    result = fetcher.search_fares(
        "DAL", "HOU", date(2027, 3, 14), date(2027, 3, 18), adults=2
    )

    assert len(result.inbound) == 1
    _, kwargs = mock_get.call_args
    params = kwargs["params"]
    assert params["twoWayTrip"] == "true"
    assert params["outboundDateString"] == "03/14/2027"
    assert params["returnDateString"] == "03/18/2027"
    assert params["adultPassengerCount"] == 2
    assert params["fareType"] == "DOLLARS"
    assert kwargs["timeout"] == 5


@patch("requests.get")
def test_one_way_search_drops_return_rows(mock_get):
    mock_get.return_value = Mock(status_code=200, text=make_page())

    entry = WatchEntry.model_validate(
        {
            "originAirport": "DAL",
            "destinationAirport": "HOU",
            "outboundDate": "03-14-2027",
            "outboundPrice": 100,
        }
    )
    result = SouthwestFetcher().fetch_entry(entry)

    assert len(result.outbound) == 3
    assert result.inbound == []
    params = mock_get.call_args.kwargs["params"]
    assert params["twoWayTrip"] == "false"
    assert params["returnDateString"] == ""
    assert params["adultPassengerCount"] == 1


@patch("requests.get")
def test_http_error_raises(mock_get):
    mock_get.return_value = Mock(status_code=503, text="Service Unavailable")
    with pytest.raises(SearchProviderError, match="HTTP 503"):
        SouthwestFetcher().search_fares("DAL", "HOU", date(2027, 3, 14))


@patch("requests.get")
def test_timeout_raises(mock_get):
    mock_get.side_effect = requests.Timeout("read timed out")
    with pytest.raises(SearchProviderError, match="timed out"):
        SouthwestFetcher().search_fares("DAL", "HOU", date(2027, 3, 14))

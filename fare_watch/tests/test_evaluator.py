import logging
from datetime import date, timedelta

from fare_watch.evaluator import drop_message, evaluate, is_expired
from fare_watch.models import CheapestAny, ExactFlight, FareRow, Leg, WatchEntry

TODAY = date(2027, 3, 1)


def make_entry(**overrides) -> WatchEntry:
    data = {
        "originAirport": "DAL",
        "destinationAirport": "HOU",
        "outboundDate": "03-14-2027",
        "returnDate": "03-18-2027",
        "adultPassengerCount": 1,
        "outboundFlightNumber": "123",
        "returnFlightNumber": "456",
        "outboundPrice": 300,
        "returnPrice": 200,
    }
    data.update(overrides)
    return WatchEntry.model_validate(data)


def test_yesterday_is_expired_regardless_of_fares():
    entry = make_entry(outboundDate=TODAY - timedelta(days=1))
    decision = evaluate(entry, [FareRow("123", 1)], [FareRow("456", 1)], TODAY)
    assert decision.expired
    assert decision.drops == []
    assert decision.updated_entry == entry


def test_today_is_not_expired():
    entry = make_entry(outboundDate=TODAY)
    assert not is_expired(entry, TODAY)
    assert not evaluate(entry, [], [], TODAY).expired


def test_outbound_drop_updates_threshold():
    entry = make_entry()
    outbound = [FareRow("123", 250), FareRow("123", 280), FareRow("999", 99)]
    inbound = [FareRow("456", 200), FareRow("456", 240)]

    decision = evaluate(entry, outbound, inbound, TODAY)

    assert decision.outbound_drop.new_price == 250
    assert decision.outbound_drop.old_price == 300
    assert decision.updated_entry.outbound_price == 250
    assert decision.return_drop is None
    assert decision.updated_entry.return_price == 200
    assert entry.outbound_price == 300


def test_drop_message_contents():
    entry = make_entry()
    decision = evaluate(entry, [FareRow("123", 250)], [FareRow("456", 150)], TODAY)
    assert decision.outbound_drop.message == (
        "Price Drop: Outbound flight #123 DAL->HOU on 03-14-2027 is now $250 (was $300)"
    )
    assert decision.return_drop.message == (
        "Price Drop: Return flight #456 HOU->DAL on 03-18-2027 is now $150 (was $200)"
    )
    assert [d.leg for d in decision.drops] == [Leg.OUTBOUND, Leg.RETURN]
    assert decision.updated_entry.return_price == 150


def test_equal_fare_is_not_a_drop():
    entry = make_entry()
    decision = evaluate(entry, [FareRow("123", 300)], [FareRow("456", 200)], TODAY)
    assert decision.drops == []
    assert decision.updated_entry is entry


def test_cheapest_mode_message_names_cheapest():
    entry = make_entry(outboundFlightNumber=None, returnDate=None, returnFlightNumber=None)
    decision = evaluate(entry, [FareRow("123", 280), FareRow("77", 199)], [], TODAY)
    assert decision.outbound_drop.new_price == 199
    assert "cheapest available flight (#77)" in decision.outbound_drop.message


def test_no_fare_found_leaves_leg_unchanged(caplog):
    caplog.set_level(logging.INFO, logger="fare_watch.evaluator")
    entry = make_entry()
    decision = evaluate(entry, [FareRow("999", 10)], [], TODAY)
    assert decision.drops == []
    assert decision.updated_entry is entry
    assert any("no outbound fare found" in r.getMessage() for r in caplog.records)
    assert any("no return fare found" in r.getMessage() for r in caplog.records)


def test_one_way_never_checks_return_leg():
    entry = make_entry(returnDate=None, returnPrice=None)
    decision = evaluate(entry, [], [FareRow("456", 1)], TODAY)
    assert decision.return_drop is None
    assert decision.updated_entry is entry


def test_second_evaluation_is_a_fixed_point():
    outbound = [FareRow("123", 250)]
    inbound = [FareRow("456", 180)]
    first = evaluate(make_entry(), outbound, inbound, TODAY)
    second = evaluate(first.updated_entry, outbound, inbound, TODAY)
    assert len(first.drops) == 2
    assert second.drops == []
    assert second.updated_entry == first.updated_entry


def test_drop_message_helper():
    msg = drop_message(Leg.RETURN, CheapestAny(), "HOU", "DAL", date(2027, 1, 2), 90, 120)
    assert msg == (
        "Price Drop: Return cheapest available flight HOU->DAL on 01-02-2027 is now $90 (was $120)"
    )
    msg = drop_message(Leg.OUTBOUND, ExactFlight("9"), "A", "B", date(2027, 1, 2), 1, 2)
    assert msg.startswith("Price Drop: Outbound flight #9 A->B")

from __future__ import annotations

from engine.eventlog import (
    Meter, PlayerRef, SimEvent, load_log, parse_formation, parse_log, parse_meter, parse_player_id,
)


def test_header_sets_formations():
    parsed = parse_log("33 vs 24\nstartMatch\n")
    assert (parsed.formation_a, parsed.formation_b) == ('33', '24')
    parsed = parse_log("4-2 VS 2-4\nstartMatch\n")
    assert (parsed.formation_a, parsed.formation_b) == ('42', '24')


def test_missing_or_bad_header_falls_back_to_42():
    parsed = parse_log("startMatch\nwonKickoff T1-F1\n")
    assert (parsed.formation_a, parsed.formation_b) == ('42', '42')
    assert [e.type for e in parsed.events] == ['startMatch', 'wonKickoff']

    parsed = parse_log("xx vs 5\nstartMatch\n")
    assert (parsed.formation_a, parsed.formation_b) == ('42', '42')
    assert len(parsed.events) == 1


def test_header_only_recognised_on_first_line():
    parsed = parse_log("startMatch\n33 vs 33\nendMatch\n")
    assert parsed.formation_a == '42'
    assert [e.type for e in parsed.events] == ['startMatch', 'endMatch']


def test_unknown_events_skipped_and_line_numbers_kept():
    text = "42 vs 42\nstartMatch\nfoo bar\n\nwonKickoff T1-F2\n   \npassBall T1-F2 T1-F1\n"
    parsed = parse_log(text)
    assert [e.type for e in parsed.events] == ['startMatch', 'wonKickoff', 'passBall']
    assert [e.line_no for e in parsed.events] == [2, 5, 7]
    ev = parsed.events[2]
    assert ev.params == ('T1-F2', 'T1-F1')
    assert ev.param(1) == 'T1-F1'
    assert ev.param(2) is None
    assert ev.raw == 'passBall T1-F2 T1-F1'


def test_empty_input():
    parsed = parse_log('')
    assert parsed.events == []
    assert parsed.formation_a == '42'


def test_parse_formation():
    assert parse_formation('33') == (3, 3)
    assert parse_formation('2-4') == (2, 4)
    assert parse_formation('abc') == (4, 2)
    assert parse_formation('') == (4, 2)


def test_parse_player_id():
    assert parse_player_id('T1-G') == PlayerRef('T1', 'G', 0)
    assert parse_player_id('T1-G').id == 'T1-G'
    assert parse_player_id('T2-D3').id == 'T2-D3'
    assert parse_player_id('T3-F1') is None
    assert parse_player_id('T1-X1') is None
    assert parse_player_id('') is None


def test_parse_meter():
    assert parse_meter('4.0|96.0') == Meter(delta=4.0, current=96.0)
    assert parse_meter('a|b') is None
    assert parse_meter('5') is None
    assert parse_meter('1|2|3') is None


def test_load_log_from_file(tmp_path):
    path = tmp_path / 'match.log'
    path.write_text("24 vs 33\nstartMatch\nendMatch\n", encoding='utf-8')
    parsed = load_log(path)
    assert parsed.formation_a == '24'
    assert parsed.events[-1] == SimEvent('endMatch', (), 'endMatch', 3)

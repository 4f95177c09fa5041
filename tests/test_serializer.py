from __future__ import annotations

import os

from rtt_sync import __version__
from rtt_sync.displays import CHANNEL_NAMES, ViewportRegion, resolve
from rtt_sync.options import LocalOptions, NetworkOptions
from rtt_sync.serializer import (
    OWNERSHIP_MARKER,
    GlobalOptions,
    header_line,
    render,
    round_coordinate,
    serialize,
)


def _value(lines, key):
    prefix = f"{key} = "
    matches = [line[len(prefix):] for line in lines if line.startswith(prefix)]
    assert len(matches) == 1, f"{key} appears {len(matches)} times"
    return matches[0]


def test_header_is_first_line_and_carries_version():
    lines = serialize(GlobalOptions(), resolve([]))

    assert lines[0] == f"{OWNERSHIP_MARKER} {__version__}"
    assert header_line("1.02") == f"{OWNERSHIP_MARKER} 1.2"


def test_hud_geometry_is_rounded_half_up():
    lines = serialize(GlobalOptions(), resolve([ViewportRegion("HUD", 10.4, 20.6, 100, 50)]))

    assert _value(lines, "USE_HUD") == "1"
    assert _value(lines, "HUD_X") == "10"
    assert _value(lines, "HUD_Y") == "21"
    assert _value(lines, "HUD_W") == "100"
    assert _value(lines, "HUD_H") == "50"
    assert _value(lines, "HUD_ONTOP") == "0"


def test_every_channel_gets_an_enable_line():
    lines = serialize(GlobalOptions(), resolve([ViewportRegion("DED_OVERLAY", 0, 0, 20, 10)]))

    for name in CHANNEL_NAMES:
        expected = "1" if name == "DED" else "0"
        assert _value(lines, f"USE_{name}") == expected
    assert _value(lines, "DED_ONTOP") == "1"
    assert not any(line.startswith("HUD_X") for line in lines)


def test_global_lines_reflect_options():
    network = NetworkOptions(ip_address="10.0.0.5", port=45000, data_strings=True)
    options = GlobalOptions(renderer=2, networked=True, local=LocalOptions(frames_per_second=60, grid=True), network=network)

    lines = serialize(options, resolve([]))

    assert _value(lines, "RENDERER") == "2"
    assert _value(lines, "NETWORKED") == "1"
    assert _value(lines, "FPS") == "60"
    assert _value(lines, "HOST") == "10.0.0.5"
    assert _value(lines, "PORT") == "45000"
    assert _value(lines, "DATA_STRINGS") == "1"
    assert _value(lines, "DATA_DRAWING") == "0"
    assert _value(lines, "GRID") == "1"


def test_empty_host_is_written_as_loopback():
    options = GlobalOptions(network=NetworkOptions(ip_address=""))

    assert _value(serialize(options, resolve([])), "HOST") == "127.0.0.1"


def test_serialize_is_independent_of_viewport_order():
    regions = [
        ViewportRegion("RWR", 5, 5, 50, 50),
        ViewportRegion("HUD", 0, 0, 100, 80),
        ViewportRegion("MFDRIGHT_OVERLAY", 200, 0, 90, 90),
    ]

    forward = serialize(GlobalOptions(), resolve(regions))
    backward = serialize(GlobalOptions(), resolve(list(reversed(regions))))

    assert forward == backward
    assert forward.index("HUD_X = 0") < forward.index("RWR_X = 5") < forward.index("MFDRIGHT_X = 200")


def test_round_coordinate_does_not_clamp_negatives():
    assert round_coordinate(2.5) == 3
    assert round_coordinate(-0.4) == 0
    assert round_coordinate(-3.0) == -2


def test_render_joins_with_platform_line_separator():
    assert render(["a", "b"]) == f"a{os.linesep}b"

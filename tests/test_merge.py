"""Tests for piste segment merging and ordering."""

import random

import pytest

from skimap.coordinates import distance_meters
from skimap.merge import SegmentMerger, group_key, merge_group, merge_segments, parse_ref
from skimap.models import Difficulty, RawSegment, SkiArea

AREA_A = SkiArea(id="A", name="A")
AREA_B = SkiArea(id="B", name="B")


def _seg(sid, coords, ref=None, name=None, difficulty="blue", area=AREA_A):
    return RawSegment(id=str(sid), name=name or f"Piste {ref or sid}",
                      difficulty=difficulty, coordinates=coords,
                      ref=ref, area=area, osm_way_id=sid)


class TestMergeSegments:
    def test_fragments_merge_into_one_piste(self):
        """Two 0.001 degree legs with the same ref become one ~222 m piste."""
        raw = [_seg(1, [(0, 0), (0, 0.001)], ref="3"),
               _seg(2, [(0, 0.001), (0, 0.002)], ref="3")]
        merged = merge_segments(raw, home_area=None)
        assert len(merged) == 1
        piste = merged[0]
        assert len(piste.segments) == 2
        assert piste.total_length == pytest.approx(2 * distance_meters(0, 0, 0.001, 0))
        assert piste.total_length == pytest.approx(222.4, abs=0.1)
        assert piste.id == "piste-merged-1-2"
        assert piste.group_key == "A|3|blue"
        assert piste.osm_way_ids == (1, 2)
        assert piste.area == AREA_A

    def test_group_key_defaults_to_first_member(self):
        piste = merge_group([_seg(4, [(0, 0), (0, 1e-3)], ref="7", area=AREA_B)])
        assert piste.group_key == "B|7|blue"

    def test_single_segment_keeps_its_id(self):
        merged = merge_segments([_seg(7, [(0, 0), (0, 0.001)], ref="1")], home_area=None)
        assert merged[0].id == "7"
        assert merged[0].segments == (((0.0, 0.0), (0.0, 0.001)),)

    def test_difficulty_and_area_split_groups(self):
        raw = [_seg(1, [(0, 0), (0, 1e-3)], ref="3"),
               _seg(2, [(0, 0), (0, 1e-3)], ref="3", difficulty="red"),
               _seg(3, [(0, 0), (0, 1e-3)], ref="3", area=AREA_B)]
        assert len(merge_segments(raw, home_area=None)) == 3

    def test_name_used_when_no_ref(self):
        a = _seg(1, [(0, 0), (0, 1e-3)], name="Panorama")
        b = _seg(2, [(0, 1e-3), (0, 2e-3)], name=" panorama ")
        assert group_key(a) == group_key(b) == "A|panorama|blue"
        assert len(merge_segments([a, b], home_area=None)) == 1

    def test_unassigned_group_key(self):
        assert group_key(_seg(1, [(0, 0)], ref="X", area=None)) == "unknown|x|blue"

    def test_endpoints_from_longest_segment(self):
        short = _seg(1, [(0, 0), (0, 0.001)], ref="5")
        long = _seg(2, [(1, 0), (1, 0.005)], ref="5")
        piste = merge_segments([short, long], home_area=None)[0]
        assert (piste.start_point.lon, piste.start_point.lat) == (1, 0)
        assert (piste.end_point.lon, piste.end_point.lat) == (1, 0.005)

    def test_segments_without_coordinates_dropped(self):
        raw = [_seg(1, [], ref="9"), _seg(2, [(0, 0), (0, 1e-3)], ref="9"),
               _seg(3, [], ref="10")]
        merged = merge_segments(raw, home_area=None)
        assert len(merged) == 1
        assert len(merged[0].segments) == 1

    def test_input_order_does_not_matter(self):
        raw = [_seg(i, [(0, i * 1e-3), (0, (i + 1) * 1e-3)], ref=str(i % 4),
                    area=AREA_A if i % 3 else AREA_B,
                    difficulty=["blue", "red", "black"][i % 3])
               for i in range(1, 25)]
        expected = merge_segments(raw, home_area="B")
        rng = random.Random(3)
        for _ in range(5):
            shuffled = raw[:]
            rng.shuffle(shuffled)
            assert merge_segments(shuffled, home_area="B") == expected


class TestSorting:
    def test_home_area_first_then_by_name(self):
        zeta = SkiArea(id="Z", name="Zeta")
        raw = [_seg(1, [(0, 0), (0, 1e-3)], ref="1", area=AREA_A),
               _seg(2, [(0, 0), (0, 1e-3)], ref="1", area=None),
               _seg(3, [(0, 0), (0, 1e-3)], ref="1", area=zeta),
               _seg(4, [(0, 0), (0, 1e-3)], ref="1", area=AREA_B)]
        merged = SegmentMerger(home_area="Zeta").merge(raw)
        assert [p.area.name if p.area else None for p in merged] == ["Zeta", "A", "B", None]

    def test_numeric_refs_before_names(self):
        raw = [_seg(1, [(0, 0), (0, 1e-3)], ref="10"),
               _seg(2, [(0, 0), (0, 1e-3)], ref="2"),
               _seg(3, [(0, 0), (0, 1e-3)], name="Alpine Run"),
               _seg(4, [(0, 0), (0, 1e-3)], ref="2a", difficulty="red")]
        merged = merge_segments(raw, home_area=None)
        assert [p.ref for p in merged] == ["2", "2a", "10", None]

    def test_no_home_area(self):
        raw = [_seg(1, [(0, 0), (0, 1e-3)], ref="1", area=AREA_B),
               _seg(2, [(0, 0), (0, 1e-3)], ref="1", area=AREA_A)]
        assert [p.area.name for p in merge_segments(raw, home_area=None)] == ["A", "B"]


class TestParseRef:
    @pytest.mark.parametrize("ref,expected", [
        ("12", 12), ("12a", 12), (" 3 ", 3), ("a12", None), ("", None), (None, None),
    ])
    def test_parse_ref(self, ref, expected):
        assert parse_ref(ref) == expected

    def test_difficulty_coerced(self):
        assert _seg(1, [(0, 0)], difficulty="black").difficulty is Difficulty.black

import pytest

from lifeflow.config import LayoutConfig
from lifeflow.engine import compute_layout
from lifeflow.hit_testing import event_positions, hit_test, select_area
from lifeflow.models import Point, Rect

from tests.fixtures import SCENARIO_A, VIEWPORT


@pytest.fixture
def result():
    return compute_layout(SCENARIO_A, LayoutConfig(viewport_size=VIEWPORT))


def test_event_positions_spread_over_node(result):
    january = result.node_by_id("2024-01:alice")
    assert january.position == Point(60.0, 282.0)
    assert january.width == 76.0

    (first, p1), (second, p2) = event_positions(january)
    assert (first.id, second.id) == ("a1", "a2")
    assert p1.x == pytest.approx(67.6)
    assert p2.x == pytest.approx(128.4)
    assert p1.y == p2.y == 300.0

    february = result.node_by_id("2024-02:alice")
    [(only, pos)] = event_positions(february)
    assert only.id == "a3"
    assert pos == february.center


def test_hit_event_within_tolerance(result):
    hit = hit_test(result, Point(70.6, 303.0))
    assert hit.matched
    assert hit.event.id == "a1"
    assert hit.node.id == "2024-01:alice"


def test_hit_node_between_events(result):
    hit = hit_test(result, Point(98.0, 300.0))
    assert hit.event is None
    assert hit.node.id == "2024-01:alice"


def test_miss(result):
    assert not hit_test(result, Point(10.0, 10.0)).matched


def test_negative_tolerance_is_zero(result):
    (_, exact), _ = event_positions(result.node_by_id("2024-01:alice"))
    assert hit_test(result, exact, tolerance=-5).event.id == "a1"
    assert hit_test(result, Point(exact.x + 1.0, exact.y), tolerance=-5).event is None


def test_hit_on_empty_layout():
    empty = compute_layout([], LayoutConfig(viewport_size=VIEWPORT))
    assert not hit_test(empty, Point(100.0, 100.0)).matched


def test_select_area(result):
    picked = select_area(result, Rect.from_points(Point(200.0, 600.0), Point(0.0, 0.0)))
    assert [n.id for n in picked] == ["2024-01:alice"]

    everything = select_area(result, Rect(0.0, 0.0, result.content_width, result.content_height))
    assert len(everything) == 2

    assert select_area(result, Rect(0.0, 0.0, 20.0, 20.0)) == []

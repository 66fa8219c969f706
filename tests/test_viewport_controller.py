import math

import pytest

from millerview.app.app_settings_manager import ViewConfig
from millerview.core.errors import NotationError, ParseServiceError
from millerview.core.index_record import IndexKind, IndexRecord
from millerview.parsing.parser_client import LocalParserClient
from millerview.viewers.controllers import viewport_controller as vc
from millerview.viewers.scene_manager import SceneManager
from millerview.viewers.scene_nodes import NodeRole


class StubNotifier:
    calls = []

    @classmethod
    def instance(cls):
        return cls

    @classmethod
    def notify(cls, **kwargs):
        cls.calls.append(kwargs)


class FakeParserClient:
    """Holds requests until the test answers them, in any order."""

    def __init__(self):
        self.pending = []

    def request(self, text, on_success, on_failure):
        self.pending.append((text, on_success, on_failure))

    def succeed(self, index, response):
        _, on_success, _ = self.pending[index]
        on_success(response)

    def fail(self, index, error):
        _, _, on_failure = self.pending[index]
        on_failure(error)


@pytest.fixture(autouse=True)
def stub_error_notifier(monkeypatch):
    monkeypatch.setattr(vc, "ErrorNotifier", StubNotifier)
    StubNotifier.calls.clear()
    yield
    StubNotifier.calls.clear()


@pytest.fixture
def scene(qtbot, fake_window):
    # long interval, the render loop is not under test here
    manager = SceneManager(ViewConfig(frame_interval_ms=1000))
    manager.initialize((640, 480), fake_window)
    yield manager
    manager.dispose()


@pytest.fixture
def client():
    return FakeParserClient()


@pytest.fixture
def controller(scene, client):
    return vc.ViewportController(scene, client)


PLANE_100 = {"type": "plane", "indices": [1, 0, 0], "intercept": [1.0, 0.5, 0.5]}
DIRECTION_111 = {"type": "direction", "indices": [1, 1, 1]}


def test_submit_sends_trimmed_text(controller, client):
    seq = controller.submit("  (100)  ")
    assert seq == 1
    assert controller.latest_sequence == 1
    assert client.pending[0][0] == "(100)"


def test_successful_plane_response(controller, client, scene, qtbot):
    controller.submit("(100)")
    with qtbot.waitSignal(controller.visualizationChanged) as blocker:
        client.succeed(0, PLANE_100)

    node = scene.transient_node
    assert node is not None
    assert node.role is NodeRole.TRANSIENT
    assert node.record == IndexRecord(IndexKind.PLANE, (1.0, 0.0, 0.0), (1.0, 0.5, 0.5))
    assert blocker.args == [node]
    assert StubNotifier.calls == []


def test_direction_replaces_plane(controller, client, scene):
    controller.submit("(100)")
    client.succeed(0, PLANE_100)
    controller.submit("[111]")
    client.succeed(1, DIRECTION_111)

    assert scene.transient_node.record.kind is IndexKind.DIRECTION
    assert len(scene.scene_props()) == len(scene.persistent_nodes) + 1


def test_stale_response_is_discarded(controller, client, scene):
    first = controller.submit("(100)")
    second = controller.submit("[111]")
    assert (first, second) == (1, 2)

    client.succeed(1, DIRECTION_111)
    shown = scene.transient_node
    client.succeed(0, PLANE_100)

    assert scene.transient_node is shown
    assert shown.record.kind is IndexKind.DIRECTION


def test_stale_failure_is_not_reported(controller, client, scene):
    controller.submit("(1)")
    controller.submit("[111]")
    client.succeed(1, DIRECTION_111)
    client.fail(0, NotationError("Expected 3 indices, found 1 in '(1)'"))

    assert StubNotifier.calls == []
    assert scene.transient_node.record.kind is IndexKind.DIRECTION


def test_latest_response_still_applies_after_stale_one(controller, client, scene):
    controller.submit("(100)")
    controller.submit("[111]")
    client.succeed(0, PLANE_100)
    assert scene.transient_node is None

    client.succeed(1, DIRECTION_111)
    assert scene.transient_node.record.kind is IndexKind.DIRECTION


def test_transport_failure_keeps_scene(controller, client, scene, qtbot):
    controller.submit("[111]")
    client.succeed(0, DIRECTION_111)
    shown = scene.transient_node

    controller.submit("(100)")
    with qtbot.waitSignal(controller.submissionFailed) as blocker:
        client.fail(1, ParseServiceError("Error connecting to parse service", status_code=None))

    assert scene.transient_node is shown
    assert blocker.args == [vc.PARSE_FAILED_TITLE, "Error connecting to parse service"]
    assert len(StubNotifier.calls) == 1
    assert StubNotifier.calls[0]["title"] == vc.PARSE_FAILED_TITLE


def test_zero_direction_is_reported_not_rendered(controller, client, scene):
    controller.submit("[000]")
    client.succeed(0, {"type": "direction", "indices": [0, 0, 0]})

    assert scene.transient_node is None
    assert len(StubNotifier.calls) == 1
    assert StubNotifier.calls[0]["title"] == vc.MAPPING_FAILED_TITLE


def test_plane_without_intercept_is_reported(controller, client, scene):
    controller.submit("(100)")
    client.succeed(0, {"type": "plane", "indices": [1, 0, 0]})

    assert scene.transient_node is None
    assert StubNotifier.calls[0]["title"] == vc.MAPPING_FAILED_TITLE
    assert "intercept" in StubNotifier.calls[0]["msg"]


@pytest.mark.parametrize("response", [
    {"type": "line", "indices": [1, 0, 0]},
    {"type": "direction", "indices": [1, 0]},
    {"type": "direction", "indices": ["a", 0, 0]},
    {"indices": [1, 0, 0]},
])
def test_malformed_response_is_reported(controller, client, scene, response):
    controller.submit("[100]")
    client.succeed(0, response)

    assert scene.transient_node is None
    assert len(StubNotifier.calls) == 1
    assert StubNotifier.calls[0]["title"] == vc.PARSE_FAILED_TITLE


@pytest.mark.parametrize("text", ["", "   ", None])
def test_blank_submission_is_rejected(controller, client, text):
    assert controller.submit(text) == 0
    assert controller.latest_sequence == 1
    assert client.pending == []
    assert len(StubNotifier.calls) == 1


def test_blank_submission_supersedes_request_in_flight(controller, client, scene):
    controller.submit("[111]")
    controller.submit("   ")
    client.succeed(0, DIRECTION_111)

    assert scene.transient_node is None
    assert len(StubNotifier.calls) == 1


def test_huge_finite_direction_is_rendered(controller, client, scene):
    controller.submit("[110]")
    client.succeed(0, {"type": "direction", "indices": [1e200, 1e200, 0]})

    s = 1 / math.sqrt(2)
    assert StubNotifier.calls == []
    assert scene.transient_node.direction == pytest.approx((s, s, 0.0))


def test_tiny_plane_normal_is_reported(controller, client, scene):
    controller.submit("(100)")
    client.succeed(0, {"type": "plane", "indices": [1e-300, 0, 0], "intercept": [1, 0, 0]})

    assert scene.transient_node is None
    assert StubNotifier.calls[0]["title"] == vc.MAPPING_FAILED_TITLE


def test_index_beyond_float_range_is_reported(controller, client, scene):
    controller.submit("[100]")
    client.succeed(0, {"type": "direction", "indices": [10 ** 400, 0, 0]})

    assert scene.transient_node is None
    assert StubNotifier.calls[0]["title"] == vc.PARSE_FAILED_TITLE


def test_local_parser_rejects_index_beyond_float_range(scene, qtbot):
    controller = vc.ViewportController(scene, LocalParserClient())

    with qtbot.waitSignal(controller.submissionFailed, timeout=2000) as blocker:
        controller.submit("[1 0 " + "9" * 400 + "]")
    assert blocker.args[0] == vc.PARSE_FAILED_TITLE
    assert scene.transient_node is None


def test_clear_removes_visualization(controller, client, scene, qtbot):
    controller.submit("[111]")
    client.succeed(0, DIRECTION_111)

    with qtbot.waitSignal(controller.visualizationChanged) as blocker:
        controller.clear()
    assert blocker.args == [None]
    assert scene.transient_node is None
    assert len(scene.scene_props()) == len(scene.persistent_nodes)


def test_response_after_dispose_is_ignored(scene, client):
    controller = vc.ViewportController(scene, client)
    controller.submit("[111]")
    scene.dispose()
    client.succeed(0, DIRECTION_111)
    assert StubNotifier.calls == []


def test_apply_record_directly(controller, scene):
    node = controller.apply_record(IndexRecord(IndexKind.DIRECTION, (0.0, 0.0, 2.0)))
    assert scene.transient_node is node
    assert node.direction == pytest.approx((0.0, 0.0, 1.0))


def test_end_to_end_with_local_parser(scene, qtbot):
    controller = vc.ViewportController(scene, LocalParserClient())

    with qtbot.waitSignal(controller.visualizationChanged, timeout=2000):
        controller.submit("(110)")
    record = scene.transient_node.record
    assert record.kind is IndexKind.PLANE
    assert record.indices == (1.0, 1.0, 0.0)
    assert record.intercept == pytest.approx((1.0, 1.0, 0.5))

    with qtbot.waitSignal(controller.submissionFailed, timeout=2000) as blocker:
        controller.submit("(12)")
    assert "Expected 3 indices" in blocker.args[1]
    assert scene.transient_node.record is record

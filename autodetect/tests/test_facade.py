"""Tests for the autodetecting facade lifecycle."""

import pytest

from autodetect.base import Rank, State, StateChangeReturn
from autodetect.bus import MessageType
from autodetect.caps import Caps
from autodetect.elements import AutoVideoSrc
from autodetect.errors import (
    DetectionError,
    ErrorDomain,
    FilterLockedError,
    LibraryCode,
    ResourceCode,
    ResourceError,
    TargetError,
)
from autodetect.facade import AutoDetect, LifecyclePhase

from .conftest import opened


@pytest.fixture
def facade(registry):
    return AutoVideoSrc("auto0", registry=registry, filter_caps=None)


def assert_endpoint_valid(facade):
    target = facade.endpoint.target
    assert target is not None
    assert target is facade.kid.src
    assert not target.owner.disposed


class TestActivation:
    def test_empty_registry_falls_back(self, facade):
        assert facade.activate() is StateChangeReturn.SUCCESS

        assert facade.state == State.READY
        assert facade.phase is LifecyclePhase.ACTIVE
        assert facade.kid.is_placeholder
        assert facade.kid.instance_name == "fake-video-src"
        assert facade.kid.sync is True
        assert facade.kid.state == State.READY
        assert facade.errors == []
        (warning,) = facade.warnings
        assert warning.domain is ErrorDomain.RESOURCE
        assert warning.code == ResourceCode.NOT_FOUND
        assert warning.text == "Failed to find a usable video source"
        assert_endpoint_valid(facade)

    def test_single_working_candidate(self, facade, registry, make_candidate):
        registry.register(make_candidate("v4l2src"))
        facade.activate()

        assert facade.kid.instance_name == "auto0-actual-src-v4l2"
        assert facade.kid.state == State.READY
        assert facade.kid.parent is facade
        assert facade.messages == []
        assert_endpoint_valid(facade)

    def test_higher_ranks_tried_first_and_failures_discarded(self, facade, registry, make_candidate, journal):
        registry.register(make_candidate("asrc", rank=300, errors=("a is busy",)))
        registry.register(make_candidate("bsrc", rank=200, errors=("b is busy",)))
        registry.register(make_candidate("csrc", rank=100, errors=("c is busy",)))
        registry.register(make_candidate("dsrc", rank=Rank.MARGINAL))
        facade.activate()

        assert opened(journal) == [
            "auto0-actual-src-a",
            "auto0-actual-src-b",
            "auto0-actual-src-c",
            "auto0-actual-src-d",
        ]
        assert facade.kid.instance_name == "auto0-actual-src-d"
        assert len(facade.last_report.errors) == 3
        assert facade.messages == []

    def test_failing_top_candidate_falls_through(self, facade, registry, make_candidate):
        registry.register(make_candidate("drvA", rank=128, errors=("Device busy",)))
        registry.register(make_candidate("drvB", rank=64))
        facade.activate()

        assert type(facade.kid).name == "drvB"
        assert [m.source for m in facade.last_report.errors] == ["auto0-actual-src-drvA"]
        assert facade.errors == []
        assert facade.warnings == []

    def test_all_failing_raises_first_error(self, facade, registry, make_candidate):
        registry.register(make_candidate("asrc", rank=Rank.PRIMARY, errors=("first", "second")))
        registry.register(make_candidate("bsrc", rank=Rank.SECONDARY, errors=("third",)))

        with pytest.raises(DetectionError) as excinfo:
            facade.activate()

        assert excinfo.value.message.text == "first"
        assert excinfo.value.message.source == "auto0-actual-src-a"
        assert [m.text for m in facade.errors] == ["first"]
        assert facade.warnings == []
        assert facade.state == State.NULL
        assert facade.phase is LifecyclePhase.INACTIVE
        assert facade.kid.is_placeholder
        assert_endpoint_valid(facade)

    def test_filter_excluded_candidate_never_activated(self, registry, make_candidate, journal):
        registry.register(make_candidate("bayersrc", rank=Rank.PRIMARY, caps="video/x-bayer"))
        registry.register(make_candidate("v4l2src", rank=Rank.SECONDARY, caps="video/x-raw-yuv"))
        facade = AutoVideoSrc("auto0", registry=registry)
        facade.activate()

        assert "auto0-actual-src-bayer" not in opened(journal)
        assert facade.kid.instance_name == "auto0-actual-src-v4l2"

    def test_only_filtered_candidates_falls_back(self, registry, make_candidate, journal):
        registry.register(make_candidate("bayersrc", caps="video/x-bayer"))
        facade = AutoVideoSrc("auto0", registry=registry)
        facade.activate()

        assert opened(journal) == []
        assert facade.kid.is_placeholder
        assert len(facade.warnings) == 1

    def test_other_families_and_low_ranks_ignored(self, facade, registry, make_candidate, journal):
        registry.register(make_candidate("alsasrc", klass="Source/Audio"))
        registry.register(make_candidate("xvimagesink", klass="Sink/Video"))
        registry.register(make_candidate("testsrc", rank=Rank.NONE))
        facade.activate()

        assert journal == []
        assert facade.kid.is_placeholder

    def test_min_rank_argument(self, registry, make_candidate):
        registry.register(make_candidate("testsrc", rank=Rank.NONE))
        facade = AutoVideoSrc("auto0", registry=registry, min_rank=0, filter_caps=None)
        facade.activate()
        assert type(facade.kid).name == "testsrc"


class TestReactivation:
    def test_changed_registry_is_seen(self, facade, registry, make_candidate):
        registry.register(make_candidate("asrc", rank=Rank.PRIMARY, errors=("busy",)))
        registry.register(make_candidate("bsrc", rank=Rank.SECONDARY))
        facade.activate()
        assert type(facade.kid).name == "bsrc"

        facade.deactivate()
        registry.register(make_candidate("asrc", rank=Rank.PRIMARY))
        facade.activate()
        assert type(facade.kid).name == "asrc"

    def test_deactivate_restores_placeholder(self, facade, registry, make_candidate, journal):
        registry.register(make_candidate("v4l2src"))
        facade.activate()
        bound = facade.kid

        assert facade.deactivate() is StateChangeReturn.SUCCESS
        assert facade.state == State.NULL
        assert facade.phase is LifecyclePhase.INACTIVE
        assert bound.state == State.NULL
        assert bound.disposed
        assert ("close", "auto0-actual-src-v4l2") in journal
        assert facade.kid.is_placeholder
        assert facade.kid.instance_name == "tempsrc"
        assert_endpoint_valid(facade)

    def test_endpoint_never_unset(self, facade, registry, make_candidate):
        assert_endpoint_valid(facade)
        facade.activate()
        assert_endpoint_valid(facade)
        facade.deactivate()
        assert_endpoint_valid(facade)

        registry.register(make_candidate("v4l2src", errors=("busy",)))
        with pytest.raises(DetectionError):
            facade.activate()
        assert_endpoint_valid(facade)

        registry.register(make_candidate("v4l2src"))
        facade.activate()
        assert_endpoint_valid(facade)
        facade.deactivate()
        assert_endpoint_valid(facade)

    def test_previous_device_released_before_probing(self, facade, registry, make_candidate, journal):
        registry.register(make_candidate("v4l2src"))
        facade.activate()
        # detect again without deactivating first
        facade.state = State.NULL
        facade.activate()

        events = [event for event, _ in journal]
        assert events == ["init", "open", "close", "init", "open"]


class TestStreaming:
    def test_pass_through_transitions(self, facade, registry, make_candidate):
        registry.register(make_candidate("v4l2src"))
        assert facade.set_state(State.PLAYING) is StateChangeReturn.SUCCESS

        assert facade.kid.state == State.PLAYING
        assert facade.endpoint.pull() == b"v4l2src"

        facade.set_state(State.NULL)
        assert facade.kid.is_placeholder
        assert facade.state == State.NULL

    def test_pass_through_failure(self, facade, registry, make_candidate):
        class Stalls(make_candidate("v4l2src")):
            def start(self):
                raise ResourceError("Could not start streaming")

        Stalls.name = "v4l2src"
        registry.register(Stalls)

        assert facade.set_state(State.PAUSED) is StateChangeReturn.FAILURE
        assert facade.state == State.READY
        assert [m.text for m in facade.errors] == ["Could not start streaming"]

    def test_bound_component_errors_reach_facade(self, facade, registry, make_candidate):
        registry.register(make_candidate("v4l2src"))
        seen = []
        facade.add_message_handler(seen.append)
        facade.activate()

        facade.kid.post_warning("Frame dropped")
        assert [m.text for m in seen] == ["Frame dropped"]
        assert facade.warnings[0].source == "auto0-actual-src-v4l2"
        assert facade.warnings[0].type is MessageType.WARNING


class TestFilter:
    def test_default_filter_from_settings(self, registry):
        facade = AutoVideoSrc("auto0", registry=registry)
        assert facade.filter_caps == Caps.from_string("video/x-raw-yuv; video/x-raw-rgb")

    def test_empty_setting_disables_filter(self, registry, monkeypatch):
        from autodetect.settings import reset_settings

        monkeypatch.setenv("AUTODETECT_VIDEO_FILTER_CAPS", '""')
        reset_settings()
        assert AutoVideoSrc("auto0", registry=registry).filter_caps is None

    def test_locked_while_bound(self, facade, registry, make_candidate):
        registry.register(make_candidate("v4l2src"))
        facade.activate()
        with pytest.raises(FilterLockedError):
            facade.filter_caps = Caps.new_any()

        facade.deactivate()
        facade.filter_caps = Caps.new_any()
        assert facade.filter_caps.is_any

    def test_settable_after_fallback(self, facade):
        facade.activate()
        facade.filter_caps = Caps.from_string("video/x-raw-rgb")
        assert facade.filter_caps == Caps.from_string("video/x-raw-rgb")


class TestFailuresAndDisposal:
    def test_retarget_failure_releases_candidate(self, facade, registry, make_candidate):
        created = []

        class Hijacked(make_candidate("v4l2src")):
            def __init__(self, instance_name):
                super().__init__(instance_name)
                created.append(self)

            def open(self):
                super().open()
                # someone else grabbed our port
                self.src.proxied_by = object()

        Hijacked.name = "v4l2src"
        registry.register(Hijacked)
        seen = []
        facade.add_message_handler(seen.append)

        with pytest.raises(TargetError):
            facade.activate()

        (candidate,) = created
        assert candidate.state == State.NULL
        assert candidate.disposed
        assert facade.kid.is_placeholder
        assert facade.state == State.NULL
        assert_endpoint_valid(facade)
        (error,) = seen
        assert error.type is MessageType.ERROR
        assert error.domain is ErrorDomain.LIBRARY
        assert error.code == LibraryCode.INIT
        assert error.text == "Failed to set target pad"
        assert error.source == "auto0"

    def test_dispose(self, facade, registry, make_candidate):
        registry.register(make_candidate("v4l2src"))
        facade.filter_caps = Caps.new_any()
        facade.activate()
        facade.dispose()

        assert facade.state == State.NULL
        assert facade.filter_caps is None
        assert facade.kid.is_placeholder

    def test_dispose_after_failed_stop(self, facade, registry, make_candidate):
        class Stuck(make_candidate("v4l2src")):
            def stop(self):
                raise ResourceError("Could not stop streaming")

        Stuck.name = "v4l2src"
        registry.register(Stuck)
        facade.set_state(State.PAUSED)
        bound = facade.kid

        assert facade.deactivate() is StateChangeReturn.FAILURE
        facade.dispose()

        assert bound.disposed
        assert bound.bus is None
        assert facade.kid.is_placeholder
        assert facade.state == State.NULL
        assert facade.phase is LifecyclePhase.INACTIVE
        assert facade.filter_caps is None
        assert_endpoint_valid(facade)

    def test_failed_close_reported_once(self, facade, registry, make_candidate):
        class Sticky(make_candidate("v4l2src")):
            def close(self):
                raise ResourceError("Could not close device")

        Sticky.name = "v4l2src"
        registry.register(Sticky)
        facade.activate()
        bound = facade.kid

        assert facade.deactivate() is StateChangeReturn.SUCCESS
        assert [m.text for m in facade.errors] == ["Could not close device"]
        assert bound.disposed
        assert facade.kid.is_placeholder

    def test_custom_family(self, registry, make_candidate):
        class AutoSink(AutoDetect):
            klass_tags = frozenset({"Sink", "Video"})
            media = "video"

        registry.register(make_candidate("xvimagesink", klass="Sink/Video"))
        facade = AutoSink("sink0", registry=registry)
        facade.activate()
        assert type(facade.kid).name == "xvimagesink"
        assert facade.filter_caps is None

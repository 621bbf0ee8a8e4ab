"""Tests for the playback mode controller and the speech handle."""

import asyncio

import pytest

from conftest import RecordingSpeechEngine
from pagewise.core.errors import CapabilityError
from pagewise.core.notices import NoticeBoard
from pagewise.core.playback import ImageStatus, PlaybackController
from pagewise.core.transitions import Mode
from pagewise.reader.speech import BrowserSpeechEngine, SpeechHandle


@pytest.fixture
def notices():
    return NoticeBoard()


@pytest.fixture
def controller(engine, illustrator, notices):
    return PlaybackController(SpeechHandle(engine), illustrator, notices, restart_delay_s=0)


class TestSpeechHandle:
    def test_acquire_releases_previous(self, engine):
        handle = SpeechHandle(engine)
        first = handle.acquire("one")
        second = handle.acquire("two")
        assert first.cancelled
        assert handle.current is second
        assert engine.max_active == 1

    def test_unavailable_engine_raises(self):
        handle = SpeechHandle(RecordingSpeechEngine(supported=False))
        with pytest.raises(CapabilityError):
            handle.acquire("hello")

    def test_finished_ignores_replaced_utterance(self, engine):
        handle = SpeechHandle(engine)
        first = handle.acquire("one")
        second = handle.acquire("two")
        assert not handle.finished(first.id)
        assert handle.finished(second.id)
        assert not handle.speaking

    def test_browser_engine_exposes_active_utterance(self):
        engine = BrowserSpeechEngine()
        handle = SpeechHandle(engine, rate=0.9, pitch=1.0)
        utterance = handle.acquire("read me")
        assert engine.active is utterance
        assert (utterance.rate, utterance.pitch) == (0.9, 1.0)
        handle.release()
        assert engine.active is None


class TestSpeechModes:
    def test_play_is_noop_in_text_mode(self, controller, engine):
        assert controller.play("hello") is None
        assert not controller.state.is_playing
        assert engine.spoken == []

    def test_play_and_pause_in_audio(self, controller, engine):
        controller.set_mode(Mode.AUDIO)
        assert controller.play("hello") is not None
        assert controller.state.is_playing
        controller.pause()
        assert not controller.state.is_playing
        assert engine.active == []

    def test_repeated_play_keeps_one_utterance(self, controller, engine):
        controller.set_mode(Mode.AUDIO)
        for text in ("a", "b", "c"):
            controller.play(text)
        assert engine.max_active == 1
        assert [u.text for u in engine.active] == ["c"]

    def test_switch_to_text_cancels_speech(self, controller, engine):
        controller.set_mode(Mode.AUDIO)
        controller.play("hello")
        controller.set_mode(Mode.TEXT)
        assert not controller.state.is_playing
        assert engine.active == []

    def test_missing_speech_reported_once(self, illustrator, notices):
        controller = PlaybackController(
            SpeechHandle(RecordingSpeechEngine(supported=False)), illustrator, notices
        )
        controller.set_mode(Mode.AUDIO)
        controller.play("a")
        controller.play("b")
        posted = notices.drain()
        assert [n.title for n in posted] == ["Audio not supported"]
        assert not controller.state.is_playing

    def test_restart_speaks_new_text(self, run, controller, engine):
        controller.set_mode(Mode.AUDIO)
        controller.play("page one")
        run(controller.restart("page two"))
        assert [u.text for u in engine.active] == ["page two"]
        assert engine.max_active == 1

    def test_pause_during_restart_delay_wins(self, run, engine, illustrator, notices):
        controller = PlaybackController(SpeechHandle(engine), illustrator, notices, restart_delay_s=0.01)
        controller.set_mode(Mode.AUDIO)
        controller.play("page one")

        async def scenario():
            task = asyncio.create_task(controller.restart("page two"))
            await asyncio.sleep(0)
            controller.pause()
            return await task

        assert run(scenario()) is None
        assert engine.active == []
        assert not controller.state.is_playing

    def test_interrupt_then_restart_resumes(self, run, controller, engine):
        controller.set_mode(Mode.AUDIO)
        controller.play("page one")
        controller.interrupt()
        assert engine.active == []
        run(controller.restart("page two"))
        assert [u.text for u in engine.active] == ["page two"]

    def test_speech_finished_clears_playing(self, controller):
        controller.set_mode(Mode.AUDIO)
        utterance = controller.play("hello")
        controller.speech_finished(utterance.id)
        assert not controller.state.is_playing


class TestIllustration:
    def test_prompt_then_image(self, run, controller, illustrator):
        url = run(controller.generate_image(0, "page text"))
        assert illustrator.calls == [("describe", 1), ("render", "scene of page 1")]
        assert url == "https://images.example/1.png"
        assert controller.state.image_status == ImageStatus.READY
        assert controller.has_image_for(0)
        assert not controller.has_image_for(1)

    def test_loading_state_while_generating(self, run, controller, illustrator):
        async def scenario():
            illustrator.gate = asyncio.Event()
            task = asyncio.create_task(controller.generate_image(0, "text"))
            await asyncio.sleep(0)
            assert controller.image_pending
            illustrator.gate.set()
            await task

        run(scenario())
        assert controller.state.image_status == ImageStatus.READY

    def test_failure_leaves_image_absent(self, run, controller, illustrator, notices):
        illustrator.fail = True
        assert run(controller.generate_image(0, "text")) is None
        assert controller.state.image_status == ImageStatus.ABSENT
        assert controller.state.generated_image is None
        assert [n.title for n in notices.drain()] == ["Video generation failed"]

    def test_discarded_generation_is_dropped(self, run, controller, illustrator):
        async def scenario():
            illustrator.gate = asyncio.Event()
            task = asyncio.create_task(controller.generate_image(0, "text"))
            await asyncio.sleep(0)
            controller.discard_image()
            illustrator.gate.set()
            await task

        run(scenario())
        assert controller.state.generated_image is None
        assert controller.state.image_status == ImageStatus.ABSENT

    def test_unexpected_error_leaves_image_absent(self, run, engine, notices):
        class BrokenIllustrator:
            async def describe(self, text, page_number):
                raise AttributeError("'NoneType' object has no attribute 'get'")

        controller = PlaybackController(SpeechHandle(engine), BrokenIllustrator(), notices, restart_delay_s=0)
        assert run(controller.generate_image(0, "text")) is None
        assert not controller.image_pending
        assert controller.state.image_status == ImageStatus.ABSENT
        assert [n.title for n in notices.drain()] == ["Video generation failed"]

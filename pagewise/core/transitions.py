from dataclasses import dataclass
from enum import Enum

from .prompts import ORIGINAL


class Mode(str, Enum):
    TEXT = "text"
    AUDIO = "audio"
    VIDEO = "video"


class EffectKind(str, Enum):
    STOP_SPEECH = "stop_speech"          # release the current utterance
    SHOW_ORIGINAL = "show_original"      # display the untranslated page, supersede pending translations
    TRANSLATE = "translate"              # request a translation of the page
    DISCARD_IMAGE = "discard_image"      # the generated image belonged to another page
    GENERATE_IMAGE = "generate_image"    # text -> prompt -> image for the page
    START_SPEECH = "start_speech"        # speak the displayed text again after a page change


@dataclass(frozen=True)
class ViewKey:
    """The (page, mode, language) tuple every side effect is keyed on."""
    page: int
    mode: Mode
    language: str


@dataclass(frozen=True)
class Effect:
    kind: EffectKind
    key: ViewKey


@dataclass(frozen=True)
class PlaybackFacts:
    is_playing: bool = False
    has_image: bool = False
    image_pending: bool = False


def reconcile(prev: ViewKey | None, new: ViewKey, facts: PlaybackFacts = PlaybackFacts()) -> list[Effect]:
    """Effects whose triggering dimension changed between two view keys, in execution order."""
    if prev is None:
        effects = [_show(new)]
        if new.mode == Mode.VIDEO:
            effects.append(Effect(EffectKind.GENERATE_IMAGE, new))
        return effects

    page_changed = prev.page != new.page
    mode_changed = prev.mode != new.mode
    language_changed = prev.language != new.language
    restart = page_changed and facts.is_playing and not mode_changed

    effects = []
    if mode_changed or restart:
        effects.append(Effect(EffectKind.STOP_SPEECH, new))
    if page_changed:
        effects.append(Effect(EffectKind.DISCARD_IMAGE, new))
        effects.append(Effect(EffectKind.SHOW_ORIGINAL, new))
        if new.language != ORIGINAL:
            effects.append(Effect(EffectKind.TRANSLATE, new))
    elif language_changed:
        effects.append(_show(new))

    if new.mode == Mode.VIDEO and (mode_changed or page_changed):
        if page_changed or not (facts.has_image or facts.image_pending):
            effects.append(Effect(EffectKind.GENERATE_IMAGE, new))

    if restart:
        effects.append(Effect(EffectKind.START_SPEECH, new))
    return effects


def _show(key: ViewKey) -> Effect:
    kind = EffectKind.SHOW_ORIGINAL if key.language == ORIGINAL else EffectKind.TRANSLATE
    return Effect(kind, key)

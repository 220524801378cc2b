"""Turns a screen frame into a focused/distracted verdict and a reminder."""

from __future__ import annotations

import logging
from typing import Callable

from errors import CLASSIFICATION_ERROR, FEEDBACK_CHANNEL_ERROR
from interfaces import Classifier, EventLoop
from models import ClassificationVerdict, ClassifierResult, Frame

logger = logging.getLogger(__name__)

VerdictCallback = Callable[[ClassificationVerdict], None]

FOCUSED_MARKER = "good"


def build_verdict_prompt(work_instruction: str) -> str:
    return f"Is user focused on: {work_instruction}? Reply 'All good.' or describe distraction"


def build_reminder_prompt(personality_prompt: str) -> str:
    return (
        f"{personality_prompt} The user was distracted. Based on your personality, "
        "output a sentence or two of reminder to be focused."
    ).strip()


def is_focused(response_text: str) -> bool:
    return FOCUSED_MARKER in response_text.lower()


class ClassificationPipeline:
    """
    One verdict call per frame, plus one reminder call on distraction.

    Collaborator results may arrive on any thread; they are posted back to the
    owner loop before ``on_verdict`` sees them. There is no retry.
    """

    def __init__(self, classifier: Classifier, loop: EventLoop) -> None:
        self._classifier = classifier
        self._loop = loop

    def classify(
        self,
        frame: Frame,
        work_instruction: str,
        personality_prompt: str,
        on_verdict: VerdictCallback,
    ) -> None:
        def on_result(result: ClassifierResult) -> None:
            self._loop.call_soon_threadsafe(
                lambda: self._handle_verdict(result, personality_prompt, on_verdict)
            )

        try:
            self._classifier.classify(frame, build_verdict_prompt(work_instruction), on_result)
        except Exception as exc:
            logger.exception("Classifier call failed")
            on_verdict(self._error_verdict(str(exc)))

    def _handle_verdict(
        self,
        result: ClassifierResult,
        personality_prompt: str,
        on_verdict: VerdictCallback,
    ) -> None:
        if not result.ok:
            logger.warning(f"{CLASSIFICATION_ERROR}: {result.code} {result.message}")
            on_verdict(self._error_verdict(result.message or result.code))
            return

        text = result.text.strip()
        logger.debug(f"Classifier response: {text!r}")
        if is_focused(text):
            on_verdict(ClassificationVerdict(focused=True, raw_response_text=text))
            return
        self._generate_reminder(personality_prompt, text, on_verdict)

    def _generate_reminder(
        self, personality_prompt: str, verdict_text: str, on_verdict: VerdictCallback
    ) -> None:
        def on_result(result: ClassifierResult) -> None:
            self._loop.call_soon_threadsafe(lambda: finish(result))

        def finish(result: ClassifierResult) -> None:
            message = result.text.strip() if result.ok else ""
            if not message:
                logger.warning(
                    f"{FEEDBACK_CHANNEL_ERROR}: reminder generation failed "
                    f"({result.code or 'empty response'} {result.message})"
                )
            on_verdict(
                ClassificationVerdict(
                    focused=False,
                    raw_response_text=verdict_text,
                    distraction_message=message or None,
                )
            )

        try:
            self._classifier.complete(build_reminder_prompt(personality_prompt), on_result)
        except Exception:
            logger.exception("Reminder call failed")
            finish(ClassifierResult(code=FEEDBACK_CHANNEL_ERROR))

    @staticmethod
    def _error_verdict(message: str) -> ClassificationVerdict:
        return ClassificationVerdict(
            focused=False,
            raw_response_text=f"Error: {message}",
            error=CLASSIFICATION_ERROR,
        )

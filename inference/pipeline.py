"""
Inference pipeline — photo in, search phrase (+ category guess) out.

Flow for one invocation:

  DISPATCHED           every enabled signal starts concurrently
  AWAITING_ALL_SIGNALS all-of join: waits until every signal has reported;
                       a failed or timed-out signal reports an empty list
  MERGED               per-signal terms unioned text → object → scene,
                       case-fold deduplicated
  TAXONOMY_EXPANDED    candidates expanded with matching taxonomy keywords
  SELECTED             alphabetical top-k → search phrase
  TERMINAL             InferenceResult (DETECTED or NO_TERM)

No state survives an invocation; the pipeline object only holds immutable
configuration and can be shared by every caller. Cancelling the awaiting task
cancels all in-flight signals and no result is produced.
"""
from __future__ import annotations

import asyncio
import itertools
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from PIL import Image

import config
from inference.candidates import merge
from inference.matcher import expand, infer_category
from inference.selector import DEFAULT_CUTOFF, select_terms
from inference.signals import POLICIES, apply_policy
from inference.taxonomy import DEFAULT_TAXONOMY, Category, Taxonomy, load_taxonomy
from recognizers.base import Recognizer, SourceKind

logger = logging.getLogger(__name__)

_invocations = itertools.count(1)


class Stage(str, Enum):
    DISPATCHED           = "dispatched"
    AWAITING_ALL_SIGNALS = "awaiting_all_signals"
    MERGED               = "merged"
    TAXONOMY_EXPANDED    = "taxonomy_expanded"
    SELECTED             = "selected"
    TERMINAL             = "terminal"


class Outcome(str, Enum):
    DETECTED = "detected"
    NO_TERM  = "no_term"       # nothing usable from any signal → ask the user


@dataclass(frozen=True)
class SignalReport:
    """What one signal contributed (empty terms = failed or found nothing)."""
    kind: SourceKind
    recognizer: str
    terms: tuple[str, ...]
    latency_ms: int


@dataclass(frozen=True)
class InferenceResult:
    search_term: str
    category_guess: Optional[Category] = None
    terms: tuple[str, ...] = ()            # the words of search_term
    suggestions: tuple[str, ...] = ()      # longer alphabetical list for the user to pick from
    outcome: Outcome = Outcome.DETECTED
    signals: tuple[SignalReport, ...] = ()

    @property
    def detected(self) -> bool:
        return self.outcome is Outcome.DETECTED

    @classmethod
    def no_term(cls, signals: tuple[SignalReport, ...] = ()) -> "InferenceResult":
        return cls(search_term="", outcome=Outcome.NO_TERM, signals=signals)


class InferencePipeline:

    def __init__(
        self,
        recognizers: Mapping[SourceKind, Recognizer],
        taxonomy: Taxonomy = DEFAULT_TAXONOMY,
        cutoff: int = DEFAULT_CUTOFF,
        suggestion_cutoff: int = 5,
        infer_category: bool = True,
        signal_timeout: Optional[float] = None,
    ):
        if cutoff < 1 or suggestion_cutoff < 1:
            raise ValueError("cutoffs must be >= 1")
        if signal_timeout is not None and signal_timeout <= 0:
            raise ValueError("signal_timeout must be positive or None")
        # fixed text → object → scene order, whatever order the caller used
        self._recognizers = {k: recognizers[k] for k in SourceKind if k in recognizers}
        self.taxonomy = taxonomy
        self.cutoff = cutoff
        self.suggestion_cutoff = suggestion_cutoff
        self.infer_category = infer_category
        self.signal_timeout = signal_timeout

    @property
    def signals(self) -> dict[SourceKind, str]:
        return {kind: r.name for kind, r in self._recognizers.items()}

    # ── Public API ──────────────────────────────────────────────────────────────

    async def infer(self, image: Image.Image) -> InferenceResult:
        inv = next(_invocations)
        t0 = time.monotonic()
        try:
            result = await self._infer(inv, image)
        except asyncio.CancelledError:
            logger.info("Inference #%d cancelled after %dms — partial results dropped",
                        inv, int((time.monotonic() - t0) * 1000))
            raise
        logger.info(
            "Inference #%d %s in %dms: %r (category=%s)",
            inv, result.outcome.value, int((time.monotonic() - t0) * 1000),
            result.search_term, result.category_guess.value if result.category_guess else None,
        )
        return result

    def submit(self, image: Image.Image) -> asyncio.Task:
        """
        Start an inference in the background and return its task.
        task.cancel() abandons it without waiting for slow signals.
        """
        return asyncio.create_task(self.infer(image))

    # ── Internals ───────────────────────────────────────────────────────────────

    def _stage(self, inv: int, stage: Stage) -> None:
        logger.debug("Inference #%d → %s", inv, stage.value)

    async def _infer(self, inv: int, image: Image.Image) -> InferenceResult:
        self._stage(inv, Stage.DISPATCHED)
        branches = [
            self._run_signal(kind, recognizer, image)
            for kind, recognizer in self._recognizers.items()
        ]

        self._stage(inv, Stage.AWAITING_ALL_SIGNALS)
        reports = tuple(await asyncio.gather(*branches))

        candidates = merge((r.kind, list(r.terms)) for r in reports)
        self._stage(inv, Stage.MERGED)
        if not candidates:
            self._stage(inv, Stage.TERMINAL)
            return InferenceResult.no_term(reports)

        matched = expand(candidates, self.taxonomy)
        self._stage(inv, Stage.TAXONOMY_EXPANDED)

        terms = select_terms(matched, self.cutoff)
        suggestions = select_terms(matched, max(self.cutoff, self.suggestion_cutoff))
        self._stage(inv, Stage.SELECTED)
        if not terms:
            self._stage(inv, Stage.TERMINAL)
            return InferenceResult.no_term(reports)

        category = infer_category(candidates.texts(), self.taxonomy) if self.infer_category else None
        self._stage(inv, Stage.TERMINAL)
        return InferenceResult(
            search_term=" ".join(terms),
            category_guess=category,
            terms=tuple(terms),
            suggestions=tuple(suggestions),
            outcome=Outcome.DETECTED,
            signals=reports,
        )

    async def _run_signal(
        self,
        kind: SourceKind,
        recognizer: Recognizer,
        image: Image.Image,
    ) -> SignalReport:
        t0 = time.monotonic()
        try:
            pending = recognizer.recognize(image)
            if self.signal_timeout is not None:
                raw = await asyncio.wait_for(pending, self.signal_timeout)
            else:
                raw = await pending
            terms = apply_policy(raw, POLICIES[kind])
        except Exception as exc:
            # a failing signal degrades to "found nothing"; the others carry on
            logger.warning("[%s] %s signal failed: %s", recognizer.name, kind.value,
                           exc or type(exc).__name__)
            terms = []
        latency_ms = int((time.monotonic() - t0) * 1000)
        logger.info("[%s] %s → %d terms in %dms", recognizer.name, kind.value, len(terms), latency_ms)
        return SignalReport(kind, recognizer.name, tuple(terms), latency_ms)


def build_pipeline(recognizers: Optional[Mapping[SourceKind, Recognizer]] = None) -> InferencePipeline:
    """Wire a pipeline from config; raises RuntimeError when no signal is available."""
    if recognizers is None:
        from recognizers.manager import get_recognizers
        recognizers = get_recognizers()
    taxonomy = load_taxonomy(config.TAXONOMY_PATH) if config.TAXONOMY_PATH else DEFAULT_TAXONOMY
    return InferencePipeline(
        recognizers,
        taxonomy=taxonomy,
        cutoff=config.SEARCH_TERM_CUTOFF,
        suggestion_cutoff=config.SUGGESTION_CUTOFF,
        infer_category=config.INFER_CATEGORY,
        signal_timeout=config.SIGNAL_TIMEOUT_SECS,
    )

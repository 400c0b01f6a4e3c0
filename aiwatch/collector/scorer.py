"""
Relevance Scorer

Weighted keyword heuristic used on the live event path. A single event can
afford a slightly richer check than bulk polling, so instead of a yes/no
gate it produces a score in [0, 1] and the live ingestor rejects anything
below its threshold (0.3 by default).

Weights:
- distinctive product/company names: 0.5
- short topic tokens (ai, gpt, llm): 0.3-0.4, word-boundary matched
- topic phrases (machine learning, neural network, ...): 0.4
- context words (prompt, fine-tuning, inference, ...): 0.1 each

A lone context word ("model", "training") never clears the threshold on
its own; one topic token does.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .prefilter import KeywordMatcher

TOKEN_WEIGHTS: Dict[str, float] = {
    "ai": 0.3,
    "gpt": 0.4,
    "llm": 0.4,
    "rag": 0.2,
}

NAME_WEIGHTS: Dict[str, float] = {
    "chatgpt": 0.5,
    "openai": 0.5,
    "anthropic": 0.5,
    "claude": 0.5,
    "gemini": 0.5,
    "copilot": 0.4,
    "llama": 0.4,
    "mistral": 0.4,
    "hugging face": 0.4,
    "huggingface": 0.4,
}

PHRASE_WEIGHTS: Dict[str, float] = {
    "machine learning": 0.4,
    "deep learning": 0.4,
    "neural network": 0.4,
    "artificial intelligence": 0.4,
    "generative": 0.3,
    "機械学習": 0.4,
    "人工知能": 0.4,
    "生成ai": 0.4,
}

CONTEXT_WEIGHTS: Dict[str, float] = {
    "prompt": 0.1,
    "fine-tun": 0.1,
    "finetun": 0.1,
    "inference": 0.1,
    "embedding": 0.1,
    "transformer": 0.1,
    "dataset": 0.1,
    "training": 0.1,
    "model": 0.1,
    "agent": 0.1,
    "token": 0.1,
}


@dataclass
class ScoreResult:
    """Result of relevance scoring"""
    score: float
    matched: List[str] = field(default_factory=list)


class RelevanceScorer:
    """Keyword-weight scorer for single live events."""

    def __init__(self, extra_keywords: Optional[Dict[str, float]] = None):
        self._weights: Dict[str, float] = {}
        for table in (TOKEN_WEIGHTS, NAME_WEIGHTS, PHRASE_WEIGHTS, CONTEXT_WEIGHTS, extra_keywords or {}):
            for keyword, weight in table.items():
                self._weights[keyword.lower()] = weight
        self._matcher = KeywordMatcher.from_vocabulary(self._weights)

    def score(self, text: Optional[str]) -> ScoreResult:
        if not text or not text.strip():
            return ScoreResult(score=0.0)

        matched = self._matcher.matched_keywords(text)
        total = sum(self._weights[k] for k in matched)
        return ScoreResult(score=round(min(total, 1.0), 3), matched=matched)

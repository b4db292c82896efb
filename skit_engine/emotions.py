"""Emotion vocabulary for actor expression cues.

The set of emotions is closed. Free-text words a model tends to produce
("furious", "smug", "ecstatic") are folded onto exactly one Emotion through
EMOTION_MAPPING, which is built once at import time.
"""

from __future__ import annotations

from enum import Enum


class Emotion(str, Enum):
    NEUTRAL = "neutral"
    APPROVAL = "approval"  # admiration, amusement
    ANGER = "anger"
    CONFUSION = "confusion"
    DESIRE = "desire"
    DISAPPOINTMENT = "disappointment"  # annoyance, disapproval
    DISGUST = "disgust"
    EMBARRASSMENT = "embarrassment"
    ECSTASY = "ecstasy"
    FEAR = "fear"  # unpleasant surprise
    GRIEF = "grief"
    GUILT = "guilt"  # remorse
    INTRIGUE = "intrigue"  # curiosity
    JOY = "joy"
    KINDNESS = "kindness"  # caring, gratitude
    LOVE = "love"
    NERVOUSNESS = "nervousness"
    PRIDE = "pride"
    SADNESS = "sadness"
    WONDER = "wonder"  # realization, optimism, pleasant surprise


EMOTION_SYNONYMS: dict[Emotion, tuple[str, ...]] = {
    Emotion.NEUTRAL: (
        "calm", "placid", "serene", "tranquil", "stoic", "neutrality", "composed",
        "composure", "unemotional", "impassive", "impassivity",
    ),
    Emotion.APPROVAL: (
        "content", "amusement", "admiration", "pleased", "appreciative", "appreciation",
        "satisfaction", "satisfied", "enjoyment", "enjoying", "contentedness",
        "cheerfulness", "cheerful",
    ),
    Emotion.ANGER: (
        "angry", "furious", "fury", "enraged", "livid", "wrathful", "frustration", "ire", "rage",
    ),
    Emotion.CONFUSION: (
        "confused", "puzzled", "baffled", "stunned", "confounded", "perplexed",
        "bewilderment", "perplexity",
    ),
    Emotion.DESIRE: (
        "seductive", "sexy", "desirous", "longing", "lust", "yearning", "passion", "passionate",
    ),
    Emotion.DISAPPOINTMENT: (
        "annoyed", "disapproval", "dismayed", "suspicious", "suspicion", "distrust",
        "resentment", "defensiveness", "mockery", "mocking", "skepticism",
    ),
    Emotion.DISGUST: (
        "disgusted", "grossed_out", "sickened", "grossed out", "sick", "revulsion",
        "disdain", "contempt",
    ),
    Emotion.EMBARRASSMENT: (
        "embarrassed", "shame", "ashamed", "sheepish", "chagrin", "mortification",
        "abashment", "selfconsciousness", "self-consciousness", "bashfulness", "bashful",
        "flustered", "fluster", "awkwardness", "awkward",
    ),
    Emotion.ECSTASY: (
        "ecstatic", "euphoria", "euphoric", "mania", "manic",
    ),
    Emotion.FEAR: (
        "shocked", "terrified", "terror", "panic", "alarm", "alarmed", "frightened",
        "horror", "horrified",
    ),
    Emotion.GRIEF: (
        "depressed", "depression", "sobbing", "desperation", "despair",
    ),
    Emotion.GUILT: (
        "remorseful", "remorse", "repentant", "regretful", "regretting", "guiltridden",
        "penitent", "penitence", "concern",
    ),
    Emotion.INTRIGUE: (
        "intrigued", "curious", "curiosity", "interest", "absorbed", "absorbing",
        "engrossed", "engrossing", "mischief", "mischievous", "mischievousness",
    ),
    Emotion.JOY: (
        "happy", "happiness", "joyfulness", "thrilled", "delighted", "elated", "jubilant",
        "elation", "humor", "playfulness", "playful", "fun", "delight", "enthusiasm",
    ),
    Emotion.KINDNESS: (
        "grateful", "caring", "thankful", "sweet", "affectionate", "tenderness", "care",
        "fondness", "warmth",
    ),
    Emotion.LOVE: (
        "lovestruck", "adoration", "adoring", "devotion", "devoted", "infatuated",
        "infatuation", "romantic", "romance",
    ),
    Emotion.NERVOUSNESS: (
        "anxious", "uncertain", "jittery", "uneasy", "unease", "worry", "worrying",
        "vulnerability", "vulnerable", "hesitance", "anxiety",
    ),
    Emotion.PRIDE: (
        "proud", "pridefulness", "challenge", "arrogance", "arrogant", "self-confidence",
        "triumph", "triumphant", "confidence", "confident", "ego", "egotism",
        "egotistical", "smug", "smugness",
    ),
    Emotion.SADNESS: (
        "sad", "upset", "distress", "sorrow", "unhappiness", "melancholy", "gloom", "dejection",
    ),
    Emotion.WONDER: (
        "excited", "optimistic", "surprised", "realization", "excitement", "shock",
        "relief", "hope", "fascinated", "fascination", "awe", "awe-struck",
    ),
}

# word -> emotion; each word appears under exactly one emotion above
EMOTION_MAPPING: dict[str, Emotion] = {
    word: emotion
    for emotion, words in EMOTION_SYNONYMS.items()
    for word in words
}

_VALUES: dict[str, Emotion] = {e.value: e for e in Emotion}


def lookup_emotion(phrase: str) -> Emotion | None:
    """Map a free-text emotion phrase to an Emotion, or None if unknown."""
    key = phrase.strip().lower()
    return _VALUES.get(key) or EMOTION_MAPPING.get(key)

"""Prompt composition for avatar generation.

This module builds the text prompt sent to the generative-image service. It
supports the two generation modes:

- **Random avatar**: one descriptor is drawn uniformly at random from each
  category of a :class:`FeatureVocabulary` (head shape, eyes, mouth, optional
  accessory, optional flourish). The drawn descriptors form the subject
  description, which is followed by fixed style-constraint clauses.
- **Style transform**: a fixed instruction describing the target hand-painted
  aesthetic. Nothing is randomized.

Only *content* is randomized. The style clauses are constants of each mode and
appear verbatim in every prompt that mode produces.

Prompt Structure (random avatar)::

    A unique, minimalist face avatar featuring [head], [eyes], and [mouth].
    [It has [accessory].] [It also has [flourish].]
    [Fixed style-constraint clauses]

Optional categories use the ``"none"`` sentinel; when it is drawn the whole
sentence for that category is omitted rather than rendered as "none".

Randomness
----------
Every draw goes through :meth:`FeatureVocabulary.choose`, which takes a
``random.Random`` instance. Pass a seeded instance to :class:`PromptComposer`
for reproducible prompts.

Usage Example
-------------
    >>> import random
    >>> from roopras.core.prompt_builder import PromptComposer
    >>> from roopras.core.models import GenerationMode
    >>> composer = PromptComposer(rng=random.Random(42))
    >>> spec = composer.compose(GenerationMode.RANDOM_AVATAR)
    >>> sorted(spec.selections)
    ['accessory', 'eyes', 'flourish', 'head', 'mouth']
"""

import json
import logging
import random
from dataclasses import dataclass, field
from pathlib import Path

from .errors import MissingInputError
from .models import GenerationMode, InputImage

logger = logging.getLogger(__name__)

NONE_SENTINEL = "none"

# Fixed style clauses. Constants rather than configuration because they
# define the monochrome line-art identity of every random avatar.
AVATAR_STYLE_CLAUSES = (
    "The style is minimalist, abstract, with bold, clean black outlines. "
    "Any shading or perceived mid-tones must be achieved solely through sparse "
    "or dense stippling (halftone dot patterns). "
    "Strictly pure black and pure white, with a plain pure white background. "
    "NO colors, NO gradients, NO shades of gray. "
    "Maintain a friendly and minimalist expression. "
    "Square 1:1 composition."
)

AVATAR_OPENING = "A unique, minimalist face avatar"

TRANSFORM_INSTRUCTION = (
    "Repaint this photo as a Ghibli-style hand-painted illustration. "
    "Use a soft, warm color palette with gentle watercolor and gouache textures "
    "and a hand-painted animation look. "
    "Preserve the subject's identity: keep their face shape, hairstyle, "
    "expression, pose and distinguishing features recognizable. "
    "Replace the background with a stylized, painterly scene in the same aesthetic. "
    "Return a single image."
)


@dataclass(frozen=True)
class FeatureCategory:
    """One independent visual attribute of a face.

    Attributes:
        name: Category key (e.g. ``"head"``)
        descriptors: Ordered, non-empty tuple of descriptor strings
        phrase: Format string applied to the drawn descriptor
        optional: Optional categories render as their own sentence and may
            contain the ``"none"`` sentinel
    """

    name: str
    descriptors: tuple[str, ...]
    phrase: str = "{}"
    optional: bool = False

    def __post_init__(self) -> None:
        if not self.descriptors:
            raise ValueError(f"Feature category '{self.name}' must have at least one descriptor")
        if "{}" not in self.phrase:
            raise ValueError(f"Phrase for category '{self.name}' must contain '{{}}'")
        if not self.optional and NONE_SENTINEL in self.descriptors:
            raise ValueError(
                f"Required category '{self.name}' cannot contain the '{NONE_SENTINEL}' sentinel"
            )

    def render(self, descriptor: str) -> str:
        """Render a drawn descriptor, or ``""`` for the none sentinel."""
        if descriptor == NONE_SENTINEL:
            return ""
        return self.phrase.format(descriptor)


class FeatureVocabulary:
    """A fixed, ordered set of independent feature categories.

    Attributes
    ----------
    categories : tuple[FeatureCategory, ...]
        Categories in assembly order

    Notes
    -----
    - Category names must be unique
    - Selection is uniform over each category's descriptors
    """

    def __init__(self, categories: list[FeatureCategory] | tuple[FeatureCategory, ...]):
        if not categories:
            raise ValueError("A feature vocabulary needs at least one category")
        names = [c.name for c in categories]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(f"Duplicate feature categories: {sorted(duplicates)}")
        self.categories: tuple[FeatureCategory, ...] = tuple(categories)
        self._by_name = {c.name: c for c in self.categories}

    def __getitem__(self, name: str) -> FeatureCategory:
        return self._by_name[name]

    def __iter__(self):
        return iter(self.categories)

    def __len__(self) -> int:
        return len(self.categories)

    @property
    def names(self) -> list[str]:
        return [c.name for c in self.categories]

    def choose(self, name: str, rng: random.Random) -> str:
        """Draw one descriptor from a category, uniformly at random.

        Args:
            name: Category name
            rng: Random source

        Returns:
            The drawn descriptor

        Raises:
            KeyError: If the category does not exist
        """
        return rng.choice(self._by_name[name].descriptors)

    def draw(self, rng: random.Random) -> dict[str, str]:
        """Draw one descriptor from every category, in category order."""
        return {c.name: self.choose(c.name, rng) for c in self.categories}

    def to_dict(self) -> dict:
        """Serialize the vocabulary to the JSON-compatible file format."""
        return {
            "categories": [
                {
                    "name": c.name,
                    "descriptors": list(c.descriptors),
                    "phrase": c.phrase,
                    "optional": c.optional,
                }
                for c in self.categories
            ]
        }

    @classmethod
    def from_file(cls, path: Path) -> "FeatureVocabulary":
        """Load a vocabulary from a JSON file.

        The file has the shape produced by :meth:`to_dict`.

        Args:
            path: Path to the JSON file

        Returns:
            Loaded vocabulary

        Raises:
            ValueError: If the file is missing, malformed, or violates a
                category invariant
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ValueError(f"Cannot read feature vocabulary {path}: {e}") from e

        try:
            categories = [
                FeatureCategory(
                    name=entry["name"],
                    descriptors=tuple(entry["descriptors"]),
                    phrase=entry.get("phrase", "{}"),
                    optional=bool(entry.get("optional", False)),
                )
                for entry in data["categories"]
            ]
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed feature vocabulary {path}: {e}") from e

        logger.info(f"Loaded feature vocabulary with {len(categories)} categories from {path}")
        return cls(categories)


DEFAULT_VOCABULARY = FeatureVocabulary(
    [
        FeatureCategory(
            name="head",
            descriptors=(
                "a rounded square head",
                "a circular head",
                "an irregular blob-like head",
                "a slightly squarish head with soft corners",
            ),
        ),
        FeatureCategory(
            name="eyes",
            descriptors=(
                "two simple dot eyes",
                "two small circular eyes",
                "two short horizontal line eyes",
                "two small oval eyes",
                "two half-moon upward-curved eyes",
            ),
        ),
        FeatureCategory(
            name="mouth",
            descriptors=(
                "a gently smiling curve mouth",
                "a straight line mouth",
                "a slightly wavy line mouth",
                "a small U-shaped mouth",
                "a short dash mouth",
            ),
        ),
        FeatureCategory(
            name="accessory",
            descriptors=(
                NONE_SENTINEL,
                "a small abstract leaf on top",
                "a single spike on top",
                "a small cloud shape on top",
                "a simple wavy hair outline",
                "a tiny, rounded horn",
            ),
            phrase="It has {}.",
            optional=True,
        ),
        FeatureCategory(
            name="flourish",
            descriptors=(
                NONE_SENTINEL,
                "a tiny triangular nose",
                "a small question mark floating near the head",
                "a small star pattern on its cheek",
                "a small abstract geometric pattern on its forehead",
                "a single teardrop shape under one eye",
            ),
            phrase="It also has {}.",
            optional=True,
        ),
    ]
)


@dataclass(frozen=True)
class PromptSpec:
    """A fully resolved prompt.

    Attributes:
        mode: Mode the prompt was composed for
        text: Complete prompt text
        selections: Drawn descriptor per category (empty for style transform)
    """

    mode: GenerationMode
    text: str
    selections: dict[str, str] = field(default_factory=dict)


def _join_features(phrases: list[str]) -> str:
    """Join phrases as natural-language list: "a", "a and b", "a, b, and c"."""
    if len(phrases) <= 2:
        return " and ".join(phrases)
    return ", ".join(phrases[:-1]) + ", and " + phrases[-1]


class PromptComposer:
    """Compose prompts for both generation modes.

    The composer holds no per-call state; each :meth:`compose` call builds a
    fresh :class:`PromptSpec`.

    Attributes
    ----------
    vocabulary : FeatureVocabulary
        Categories drawn from in random-avatar mode
    rng : random.Random
        Random source used for every draw

    Examples
    --------
    Reproducible prompts with a seeded source:

        >>> a = PromptComposer(rng=random.Random(7)).compose(GenerationMode.RANDOM_AVATAR)
        >>> b = PromptComposer(rng=random.Random(7)).compose(GenerationMode.RANDOM_AVATAR)
        >>> a.text == b.text
        True
    """

    def __init__(
        self,
        vocabulary: FeatureVocabulary | None = None,
        rng: random.Random | None = None,
    ):
        self.vocabulary = vocabulary or DEFAULT_VOCABULARY
        self.rng = rng or random.Random()

    def compose(self, mode: GenerationMode, input_image: InputImage | None = None) -> PromptSpec:
        """Build the prompt for a mode.

        Args:
            mode: Generation mode
            input_image: Required for style-transform mode, ignored otherwise

        Returns:
            Fully resolved prompt

        Raises:
            MissingInputError: If style-transform mode is requested without an image
            ValueError: If the mode is unknown
        """
        if mode is GenerationMode.RANDOM_AVATAR:
            return self.compose_random_avatar()
        if mode is GenerationMode.STYLE_TRANSFORM:
            if input_image is None:
                raise MissingInputError("Style transform requires an input image.")
            return PromptSpec(mode=mode, text=TRANSFORM_INSTRUCTION)
        raise ValueError(f"Unknown generation mode: {mode!r}")

    def compose_random_avatar(self) -> PromptSpec:
        """Draw one descriptor per category and assemble the avatar prompt."""
        selections = self.vocabulary.draw(self.rng)

        feature_phrases = []
        optional_sentences = []
        for category in self.vocabulary:
            rendered = category.render(selections[category.name])
            if not rendered:
                continue
            if category.optional:
                optional_sentences.append(rendered)
            else:
                feature_phrases.append(rendered)

        if feature_phrases:
            sentences = [f"{AVATAR_OPENING} featuring {_join_features(feature_phrases)}."]
        else:
            sentences = [f"{AVATAR_OPENING}."]
        sentences.extend(optional_sentences)
        sentences.append(AVATAR_STYLE_CLAUSES)

        text = " ".join(sentences)
        logger.debug(f"Composed avatar prompt from selections: {selections}")
        return PromptSpec(mode=GenerationMode.RANDOM_AVATAR, text=text, selections=selections)

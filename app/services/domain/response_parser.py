"""
Domain service: turn a generated tree description into structured fields.

The text generator is asked (see ``build_tree_info_prompt``) to answer with a
fixed list of headed sections. Its output shape is not guaranteed, so the
parser never fails: unknown headers fold into the open section and missing
sections come back empty.
"""
import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


# Header prefix -> section name. ``None`` marks the classification block,
# whose lines are parsed into a mapping instead of running text.
SECTION_HEADERS = (
    ("Detailed Description:", "description"),
    ("Medicinal Benefits:", "medicinalBenefits"),
    ("Environmental Benefits:", "environmentalBenefits"),
    ("Native to India:", "native"),
    ("Scientific Classification:", None),
    ("Common Tree Category:", "category"),
)

SECTION_NAMES = ("description", "medicinalBenefits", "environmentalBenefits", "native", "category")

CLASSIFICATION_SECTION = "classification"

# Markdown list marker a header may be echoed with.
_BULLET = re.compile(r"^[-*]\s+")

TREE_CATEGORIES = (
    "Medicinal Trees",
    "Fruit-Bearing Trees",
    "Timber Trees",
    "Ornamental Trees",
    "Shade Trees",
    "Sacred or Religious Trees",
    "Evergreen Trees",
    "Deciduous Trees",
    "Endangered",
    "Rare Trees",
    "Others",
)


@dataclass
class ParsedTreeInfo:
    """Sections and taxonomy extracted from one generated answer."""
    sections: Dict[str, str] = field(
        default_factory=lambda: {name: "" for name in SECTION_NAMES}
    )
    classification: Dict[str, str] = field(default_factory=dict)

    @property
    def description(self) -> str:
        return self.sections["description"]

    @property
    def medicinal_benefits(self) -> str:
        return self.sections["medicinalBenefits"]

    @property
    def environmental_benefits(self) -> str:
        return self.sections["environmentalBenefits"]

    @property
    def native(self) -> str:
        return self.sections["native"]

    @property
    def category(self) -> str:
        return self.sections["category"]


def _normalize_native(text: str) -> str:
    return "Yes" if text.strip().lower().startswith("yes") else "No"


def _parse_classification_line(line: str) -> Optional[Tuple[str, str]]:
    parts = line[2:].split(":", 1)
    if len(parts) != 2:
        return None
    return parts[0].strip().lower(), parts[1].strip()


def parse_ai_response(text: str) -> ParsedTreeInfo:
    """
    Parse a generated tree description.

    Lines are scanned in order. A header line, bulleted or not, opens its
    section and keeps any text after the header; other lines are appended,
    space separated, to the open section. Inside the classification block,
    ``- key: value`` lines become entries of the classification mapping.

    Args:
        text: Multi-line answer from the text generator

    Returns:
        ParsedTreeInfo with every section present (empty when missing)
    """
    info = ParsedTreeInfo()
    current = ""
    seen_native = False

    for raw_line in text.split("\n"):
        line = raw_line.strip()

        heading = _BULLET.sub("", line, count=1)
        header = next(
            ((prefix, name) for prefix, name in SECTION_HEADERS if heading.startswith(prefix)),
            None,
        )
        if header is not None:
            prefix, name = header
            if name is None:
                current = CLASSIFICATION_SECTION
                continue
            current = name
            seen_native = seen_native or name == "native"
            info.sections[name] = heading[len(prefix):]
            continue

        if current == CLASSIFICATION_SECTION:
            if line.startswith("- "):
                entry = _parse_classification_line(line)
                if entry is not None:
                    key, value = entry
                    info.classification[key] = value
            continue

        if current:
            info.sections[current] += " " + line

    for name, value in info.sections.items():
        info.sections[name] = value.strip()

    if seen_native:
        info.sections["native"] = _normalize_native(info.sections["native"])

    return info


def build_tree_info_prompt(scientific_name: str) -> str:
    """
    Prompt that asks for the sections ``parse_ai_response`` understands.

    Args:
        scientific_name: Botanical name chosen by the volunteer

    Returns:
        Prompt text
    """
    categories = "\n".join(f"  - {category}" for category in TREE_CATEGORIES)
    return (
        "You are a knowledgeable botanical expert. Based only on accurate botanical "
        "taxonomy, what is the most widely accepted scientific and common name for the "
        f"plant with the scientific name '{scientific_name}'? Do not confuse it with "
        "similar plants.\n\n"
        "Include:\n"
        "Common Name:\n"
        "Detailed Description: (Provide a comprehensive and detailed paragraph explaining "
        "the plant's characteristics, appearance, growth behavior, and typical habitat)\n"
        "Medicinal Benefits: (Give an in-depth explanation of traditional and modern "
        "medicinal uses, including any active compounds if known)\n"
        "Environmental Benefits: (Provide detailed benefits this plant offers to the "
        "ecosystem such as carbon absorption, air purification, soil enrichment, "
        "biodiversity support)\n"
        "Native to India: Yes or No\n"
        "Scientific Classification:\n"
        "  - Kingdom:\n"
        "  - Phylum (or Division for plants):\n"
        "  - Class:\n"
        "  - Order:\n"
        "  - Family:\n"
        "  - Genus:\n"
        "  - Species:\n"
        "Common Tree Category: (Return only one from this list exactly as is, without "
        "any extra explanation)\n"
        f"{categories}"
    )

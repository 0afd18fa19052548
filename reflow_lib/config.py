"""
reflow_lib/config.py: Tunable constants for layout reconstruction and pagination.

Every threshold that changes visible output lives on ReflowConfig. Defaults can be
overridden from an INI file (see load_config) or directly by the caller.
"""
import configparser
import logging
import os
from dataclasses import asdict, dataclass, fields

log = logging.getLogger("reflow.api")

# --- PAGINATION ---
MAX_CHARS_PER_PAGE = 800
MIN_PARAGRAPH_LENGTH = 15
MIN_WIDOW_CHARS = 80
MIN_ORPHAN_CHARS = 80
WIDOW_MERGE_TOLERANCE = 1.15
ORPHAN_MOVE_TOLERANCE = 1.10
SENTENCE_LOOKAHEAD = 50
SPACE_SPLIT_MIN_RATIO = 0.3

# --- LAYOUT ---
HEADER_FOOTER_MARGIN = 0.08
LINE_Y_TOLERANCE = 4
WORD_GAP_FACTOR = 0.3
COLUMN_GAP_THRESHOLD = 100
MIN_COLUMN_FRAGMENTS = 4
DOMINANT_X_MIN_COUNT = 3
COLUMN_GRID = 10
SHORT_LINE_CHARS = 70

# --- CHAPTERS ---
MAX_TITLE_LENGTH = 100
TITLE_CHARS = 80

# --- OCR ---
TEXT_THRESHOLD = 50
OCR_RENDER_SCALE = 2.5
OCR_LANGUAGE = "en"
OCR_MAX_WORKERS = 4

# INI section each field is read from.
_SECTIONS = {
    "Pagination": (
        "max_chars_per_page",
        "min_paragraph_length",
        "min_widow_chars",
        "min_orphan_chars",
        "widow_merge_tolerance",
        "orphan_move_tolerance",
        "sentence_lookahead",
        "space_split_min_ratio",
    ),
    "Layout": (
        "header_footer_margin",
        "line_y_tolerance",
        "word_gap_factor",
        "column_gap_threshold",
        "min_column_fragments",
        "dominant_x_min_count",
        "column_grid",
        "short_line_chars",
        "max_title_length",
        "title_chars",
        "isolate_headings",
    ),
    "OCR": (
        "text_threshold",
        "ocr_render_scale",
        "ocr_language",
        "ocr_max_workers",
        "ocr_enabled",
    ),
}


@dataclass
class ReflowConfig:
    """All tunables of the reconstruction pipeline."""

    max_chars_per_page: int = MAX_CHARS_PER_PAGE
    min_paragraph_length: int = MIN_PARAGRAPH_LENGTH
    min_widow_chars: int = MIN_WIDOW_CHARS
    min_orphan_chars: int = MIN_ORPHAN_CHARS
    widow_merge_tolerance: float = WIDOW_MERGE_TOLERANCE
    orphan_move_tolerance: float = ORPHAN_MOVE_TOLERANCE
    sentence_lookahead: int = SENTENCE_LOOKAHEAD
    space_split_min_ratio: float = SPACE_SPLIT_MIN_RATIO

    header_footer_margin: float = HEADER_FOOTER_MARGIN
    line_y_tolerance: float = LINE_Y_TOLERANCE
    word_gap_factor: float = WORD_GAP_FACTOR
    column_gap_threshold: float = COLUMN_GAP_THRESHOLD
    min_column_fragments: int = MIN_COLUMN_FRAGMENTS
    dominant_x_min_count: int = DOMINANT_X_MIN_COUNT
    column_grid: int = COLUMN_GRID
    short_line_chars: int = SHORT_LINE_CHARS
    max_title_length: int = MAX_TITLE_LENGTH
    title_chars: int = TITLE_CHARS
    isolate_headings: bool = True

    text_threshold: int = TEXT_THRESHOLD
    ocr_render_scale: float = OCR_RENDER_SCALE
    ocr_language: str = OCR_LANGUAGE
    ocr_max_workers: int = OCR_MAX_WORKERS
    ocr_enabled: bool = True

    def __post_init__(self):
        if self.max_chars_per_page <= 0:
            raise ValueError("max_chars_per_page must be positive.")
        if not 0 <= self.header_footer_margin < 0.5:
            raise ValueError("header_footer_margin must be in [0, 0.5).")
        if self.ocr_max_workers < 1:
            raise ValueError("ocr_max_workers must be at least 1.")

    def replace(self, **overrides):
        """Returns a copy with the given non-None fields overridden."""
        values = asdict(self)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return ReflowConfig(**values)

    def to_sections(self) -> dict:
        """Groups the settings by INI section, as strings."""
        values = asdict(self)
        return {
            section: {name: str(values[name]) for name in names}
            for section, names in _SECTIONS.items()
        }


def _coerce(field_type, raw: str):
    """Converts an INI string to the dataclass field's type."""
    if field_type in (bool, "bool"):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if field_type in (int, "int"):
        return int(raw)
    if field_type in (float, "float"):
        return float(raw)
    return raw.strip()


def load_config(config_path: str = None) -> ReflowConfig:
    """Reads a ReflowConfig from an INI file, applying defaults for missing keys.

    A missing file is not an error; the defaults are returned.
    """
    if not config_path:
        return ReflowConfig()
    if not os.path.exists(config_path):
        log.info("Config file not found at %s. Using defaults.", config_path)
        return ReflowConfig()

    parser = configparser.ConfigParser()
    parser.read(config_path)
    types = {f.name: f.type for f in fields(ReflowConfig)}
    overrides = {}
    for section, names in _SECTIONS.items():
        if not parser.has_section(section):
            continue
        for name in names:
            if parser.has_option(section, name):
                raw = parser.get(section, name)
                try:
                    overrides[name] = _coerce(types[name], raw)
                except ValueError:
                    log.error(
                        "Invalid value for [%s] %s: %r. Keeping default.", section, name, raw
                    )
    log.debug("Loaded %d setting(s) from %s", len(overrides), config_path)
    return ReflowConfig(**overrides)


def save_config(config: ReflowConfig, config_path: str):
    """Writes the configuration to an INI file."""
    parser = configparser.ConfigParser()
    for section, values in config.to_sections().items():
        parser[section] = values
    try:
        with open(config_path, "w") as configfile:
            parser.write(configfile)
        log.info("Settings successfully saved to %s", config_path)
    except IOError as e:
        log.error("Failed to write settings to %s: %s", config_path, e)

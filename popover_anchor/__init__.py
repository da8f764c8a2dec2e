from .alignment import DEFAULT_ALIGNMENT, Alignment, AlignmentPoint, Box
from .alignment_parser import AlignmentParser, parse_alignment
from .alignment_transforms import CANONICAL_CANDIDATE_COUNT, FALLBACK_RECIPES, TRANSFORMS, build_fallback_chain
from .popover_config import PopoverSettings, apply_log_level, load_popover_settings
from .positioning import Placement, always_fits, compute_point, contained_within, select_alignment
from .version import __version__

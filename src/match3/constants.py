GRID_ROWS = 8
GRID_COLS = 8
TILE_TYPE_COUNT = 6
INITIAL_MOVES = 30
# Score needed to finish a match-3 level.
TARGET_SCORE = 500

MIN_MATCH_LENGTH = 3
# Every matched tile awards this once, even when it sits in two crossing runs.
BASE_TILE_POINTS = 10
# Extra points per tile beyond MIN_MATCH_LENGTH in a single run.
LENGTH_BONUS_POINTS = 5

# Random fills tried before falling back to the deterministic layout.
GENERATION_MAX_ATTEMPTS = 1000
# Permutations tried when reshuffling a deadlocked board.
SHUFFLE_MAX_ATTEMPTS = 100
# Guard against a refill policy that never stops producing matches.
MAX_CASCADE_DEPTH = 100

# Fallback layout: tile type forced onto an L of three cells at this anchor.
FALLBACK_CLUSTER_TYPE = 0
FALLBACK_CLUSTER_ANCHOR = (2, 2)
FALLBACK_CLUSTER_OFFSETS = ((0, 0), (0, 1), (1, 0))

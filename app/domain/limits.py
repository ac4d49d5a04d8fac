# app/domain/limits.py
# Batas tetap engine (tidak dinegosiasikan per-request).

MIN_QUERY_LENGTH = 3

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100

DEFAULT_SUGGESTION_LIMIT = 10
DEFAULT_ALTERNATIVE_LIMIT = 5
DEFAULT_RECENT_LIMIT = 10

# simple search (tanpa paginasi) mengambil paling banyak sekian kandidat
SIMPLE_SEARCH_CAP = 200

# skor similarity <= ambang ini dibuang di mode suggestion
SUGGESTION_NOISE_FLOOR = 0.1

# toleransi rekonsiliasi skor akhir vs weighted sum + bonus/penalti
RECONCILIATION_TOLERANCE = 0.1


def clamp_page(page: int | None) -> int:
    if not page or page < 1:
        return 1
    return page


def clamp_page_size(size: int | None) -> int:
    if not size or size < 1:
        return DEFAULT_PAGE_SIZE
    return min(size, MAX_PAGE_SIZE)


def clamp_limit(limit: int | None, default: int) -> int:
    if not limit or limit < 1:
        return default
    return min(limit, MAX_PAGE_SIZE)

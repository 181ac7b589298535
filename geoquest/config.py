import os
import pathlib

# ---------- Paths ----------
# Anchor data to the package directory so runs from any working directory agree
PACKAGE_DIR = pathlib.Path(__file__).resolve().parent
DATA_DIR = pathlib.Path(os.environ.get("GEOQUEST_DATA_DIR") or PACKAGE_DIR / "data")
PROGRESS_FILE = pathlib.Path(
    os.environ.get("GEOQUEST_PROGRESS_FILE") or PACKAGE_DIR.parent / "progress.json"
)

COUNTRIES_FILE = "countries_merged.json"
BORDERS_FILE = "admin0_sovereignty.geojson"
RIVERS_FILE = "ne_50m_rivers.geojson"
GDP_FILE = "gdp_by_country.json"
EXPORTS_FILE = "exports_by_country.json"
UNESCO_FILE = "unesco_sites.json"
LANDMARKS_FILE = "landmarks.json"

# ---------- Remote sources ----------
NE_BORDERS_URL = (
    "https://raw.githubusercontent.com/nvkelso/natural-earth-vector/master/"
    "geojson/ne_10m_admin_0_sovereignty.geojson"
)
NE_RIVERS_URL = (
    "https://raw.githubusercontent.com/nvkelso/natural-earth-vector/master/"
    "geojson/ne_50m_rivers_lake_centerlines_scale_rank.geojson"
)
COUNTRIES_URL = "https://raw.githubusercontent.com/mledoze/countries/master/countries.json"
HTTP_TIMEOUT = 20
USER_AGENT = "geoquest/0.1 (geography quiz)"

# ---------- Gameplay ----------
MAX_HEARTS = 3
LEVEL_UP_EVERY = 5
HEART_STREAK_EVERY = 5
HINTS_PER_GAME = 3
SKIPS_PER_GAME = 3
OPTION_COUNT = 4
MIN_WINDOW = 10

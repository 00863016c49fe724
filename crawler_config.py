"""
Default settings for the auction lot watcher.

Every value here can be overridden by environment variables, a YAML
config file or command line flags (see run_config.py).
"""

# Origin of the auction site. The listing index lives under LISTING_PATH.
BASE = "https://encheres-domaine.gouv.fr"
LISTING_PATH = "/ventes"

# Keyword regular expression, matched case-insensitively against
# "title\ndescription" of every lot
KEYWORDS = r"\b(montre|montres|horlogerie)\b"

# Rate limiting: minimum delay in milliseconds between two page fetches.
# Increase this if you're getting blocked or want to be more polite
DELAY_MS = 800

# Hard cap on the number of listing pages visited while following pagination
MAX_PAGES = 400

# Timezone used for the generation time and the next run countdown
TIMEZONE = "Europe/Paris"

# Hour of day (in TIMEZONE) at which the report is regenerated
RUN_HOUR = 10

# Where the report is written (overwritten on every run)
OUTPUT_PATH = "public/montres.html"

# Browser options
# False = browser window visible (useful for debugging)
HEADLESS = True

# Per-fetch timeout and post-scroll settle delay, in milliseconds
FETCH_TIMEOUT_MS = 60000
SETTLE_MS = 500

# Page fetcher: "browser" (Playwright, renders JavaScript) or "http" (curl_cffi)
FETCHER = "browser"

# Abort the whole run on the first failed fetch instead of skipping the URL
STRICT = False

"""
Settings - Default configuration values for the Printavo backup extractor.

This module provides the DEFAULT_SETTINGS dict that the orchestrator uses as
fallback values when environment variables are not set. The actual configuration
is loaded from .env at runtime.

Configuration precedence (highest to lowest):
  1. CLI flags (--debug, --parallel)
  2. Environment variables (from .env file)
  3. DEFAULT_SETTINGS (this file)

Settings reference:
  PRINTAVO_API          GraphQL endpoint (don't change unless Printavo moves it)
  RATE_LIMIT_DELAY_MS   Minimum milliseconds between any two requests. Printavo
                        allows 10 requests per 5 seconds; 650ms leaves headroom.
  RETRY_DELAY_MS        Base retry delay; attempt N waits N times this
  MAX_RETRIES           Total attempts per request (first try included)
  REQUEST_TIMEOUT       Seconds before a hung request counts as failed
  CHECKPOINT_EVERY      Extracted orders between progress.json writes
  PARALLEL_SUBQUERIES   Issue an order's three sub-queries concurrently
  DATA_DIR              Output directory (default: ./data)
  DEBUG                 Verbose logging (default: False)
"""

DEFAULT_SETTINGS = {
    "PRINTAVO_API": "https://www.printavo.com/api/v2",
    "RATE_LIMIT_DELAY_MS": 650,
    "RETRY_DELAY_MS": 5000,
    "MAX_RETRIES": 3,
    "REQUEST_TIMEOUT": 60,
    "CHECKPOINT_EVERY": 10,
    "PARALLEL_SUBQUERIES": False,
    "DATA_DIR": "./data",
    "DEBUG": False,
}

# Values shipped in .env.example. Credentials still set to these are rejected.
PLACEHOLDER_EMAIL = "your-email@example.com"
PLACEHOLDER_TOKEN = "your-api-token-here"

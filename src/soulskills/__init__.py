"""SoulSkills — soulbound skill credentials.

Non-transferable tokens that carry numeric skill attributes.
Tokens are minted only with an authority signature over the exact
payload and can never move between holders: mint and burn only.
"""

__version__ = "0.1.0"

SOULSKILLS_HOME = "~/.soulskills"

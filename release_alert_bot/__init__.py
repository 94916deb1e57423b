"""
Movie Release Alert Bot Package

A Telegram bot that looks up upcoming movie releases on TMDb and notifies
subscribers shortly before a release date.

Modules:
- command_parser: Matches chat messages against the command grammar
- movie_client: Searches the TMDb catalog
- subscription_store / record_store: Persists releases and their subscribers
- conversation: Builds replies for each command
- notifier: Sends release reminders inside the 7-day window
- bot: Telegram polling loop and notifier schedule
"""

__version__ = "1.0.0"
__author__ = "Movie Release Alert Bot"

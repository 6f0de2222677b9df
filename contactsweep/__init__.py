"""contactsweep: bulk export and removal of LinkedIn connections.

Talks to LinkedIn's private Voyager API with the user's own session,
discovering which endpoint revision works and removing connections one at
a time under a human-paced rate limiter.
"""

__version__ = "0.1.0"

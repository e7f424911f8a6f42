"""
Mundo Tango backend.

A social network for the tango community: profiles and the social graph,
posts and ranked feeds, groups, events, a marketplace for teaching material,
crowdfunding campaigns, messaging and gamification. The scoring logic behind
feeds, recommendations, fraud and quality checks lives in
``mundo_tango.algorithms`` and is independent of the web server.
"""

__version__ = "0.1.0"

"""
Stateless scoring functions.

Each module takes small pydantic models (never ORM rows or sessions) and an
explicit ``now`` where time matters, so results are reproducible in tests.

Modules:
- text: similarity and hashtag/mention extraction
- feed: personalized, discover, trending and recommended ranking
- recommendations: friend, event, teacher and content suggestions
- fraud: crowdfunding campaign risk analysis
- campaign_optimizer: campaign page quality scoring
- donor_engagement: donor segmentation and retention
- moderation: content checks and spam scoring
- listing_quality: marketplace listing review
- transactions: purchase status, refunds and settlement
- engagement: engagement analytics and viral prediction
- gamification: points, levels and achievement progress
"""

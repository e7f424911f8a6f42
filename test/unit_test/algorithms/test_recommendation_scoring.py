from datetime import datetime, timedelta

from mundo_tango.algorithms.recommendations import (
    ContentCandidate,
    DancerProfile,
    EventCandidate,
    FriendCandidate,
    TeacherCandidate,
    preferred_event_types,
    recommend_content,
    recommend_events,
    recommend_friends,
    recommend_teachers,
    score_event,
    score_friend_candidate,
    score_teacher,
)

NOW = datetime(2024, 9, 14, 20, 0)

ROSARIO_DANCER = DancerProfile(
    id=1, city="Rosario", country="AR", leader_level=2, follower_level=2, interests=["vals", "milonga"]
)


class TestFriends:
    def test_every_signal(self):
        candidate = FriendCandidate(
            id=2,
            city="Rosario",
            country="AR",
            leader_level=2,
            follower_level=2,
            interests=["vals"],
            mutual_friend_count=3,
            shared_event_count=4,
        )
        result = score_friend_candidate(ROSARIO_DANCER, candidate)
        assert result.score == 81.5
        assert result.reasons == [
            "3 mutual friends",
            "Similar dance level",
            "Lives in Rosario",
            "Attended 4 same events",
            "1 shared interest",
        ]

    def test_same_country_only(self):
        candidate = FriendCandidate(id=3, city="Córdoba", country="AR", leader_level=9, follower_level=9)
        result = score_friend_candidate(ROSARIO_DANCER, candidate)
        assert (result.score, result.reasons) == (10.0, ["Lives in AR"])

    def test_zero_scores_and_exclusions_dropped(self):
        candidates = [
            FriendCandidate(id=1, city="Rosario", country="AR", leader_level=2, follower_level=2),
            FriendCandidate(id=4, leader_level=7, follower_level=7),
            FriendCandidate(id=5, city="Rosario", country="AR"),
            FriendCandidate(id=6, city="Rosario", country="AR", leader_level=2, follower_level=2),
        ]
        results = recommend_friends(ROSARIO_DANCER, candidates, exclude_ids={6})
        assert [r.id for r in results] == [5]


class TestEvents:
    def test_preferred_types(self):
        history = ["milonga", "practica", "milonga", "", "festival", "class"]
        assert preferred_event_types(history) == ["milonga", "practica", "festival"]

    def test_every_signal(self):
        event = EventCandidate(
            id=10,
            event_type="milonga",
            city="Rosario",
            country="AR",
            dance_styles=["vals"],
            current_attendees=20,
            friends_attending=2,
        )
        result = score_event(ROSARIO_DANCER, event, ["vals"])
        assert result.score == 83.5
        assert result.reasons == ["In Rosario", "2 friends attending", "Matches your interests", "vals event", "20 attending"]

    def test_interest_match_uses_lead_dance_style(self):
        event = EventCandidate(id=11, event_type="milonga", dance_styles=["salon", "milonga"])
        assert score_event(ROSARIO_DANCER, event, ["milonga"]).reasons == ["milonga event"]
        assert score_event(ROSARIO_DANCER, event, ["salon"]).score == 27.5

    def test_ranking(self):
        events = [
            EventCandidate(id=1, city="Lima", country="PE"),
            EventCandidate(id=2, city="Córdoba", country="AR"),
            EventCandidate(id=3, city="Rosario", country="AR"),
        ]
        results = recommend_events(ROSARIO_DANCER, events)
        assert [(r.id, r.score) for r in results] == [(3, 30.0), (2, 15.0)]


class TestTeachers:
    def test_beginner_friendly_local_teacher(self):
        teacher = TeacherCandidate(
            id=7,
            city="Rosario",
            country="AR",
            specialties=["vals"],
            years_teaching=4,
            average_rating=5.0,
            total_reviews=20,
        )
        result = score_teacher(ROSARIO_DANCER, teacher)
        assert result.score == 90.0
        assert result.reasons == ["Located in Rosario", "Great for beginners", "Teaches vals", "5.0 star rating"]

    def test_advanced_dancer_needs_experienced_teacher(self):
        advanced = DancerProfile(id=1, leader_level=4, follower_level=4)
        result = score_teacher(advanced, TeacherCandidate(id=7, years_teaching=4))
        assert result.score == 17.0
        assert result.reasons == []

    def test_limit(self):
        teachers = [TeacherCandidate(id=i, average_rating=float(i)) for i in range(1, 6)]
        assert [r.id for r in recommend_teachers(ROSARIO_DANCER, teachers, limit=2)] == [5, 4]


class TestContent:
    def test_friend_post_beats_group_post(self):
        posts = [
            ContentCandidate(id=1, author_id=2, created_at=NOW),
            ContentCandidate(id=2, author_id=3, group_id=7, likes=4, comments=4, created_at=NOW - timedelta(hours=48)),
            ContentCandidate(id=3, author_id=4, created_at=NOW - timedelta(days=10)),
            ContentCandidate(id=4, author_id=1, created_at=NOW),
        ]
        results = recommend_content(1, posts, friend_ids={2}, following_ids=set(), group_ids={7}, now=NOW)

        assert [(r.id, r.score) for r in results] == [(1, 45.0), (2, 29.0)]
        assert results[1].reasons == ["From your group", "Popular post"]

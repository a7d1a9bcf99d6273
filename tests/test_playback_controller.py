import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from requestline.core.errors import InvalidSubmission, InvalidTransition, InvariantViolation, NotFound
from requestline.db.models.song_request import RequestStatus, SongRequest
from requestline.db.repositories.song_request import SongRequestRepository, song_request_repository
from requestline.db.session import Base
from requestline.schemas.auth import OperatorIdentity
from requestline.services.playback import PlaybackController, playback_controller


def playing_count(statuses):
    return sum(1 for status in statuses.values() if status == RequestStatus.PLAYING)


def test_submit_creates_new_request_with_cleaned_text(db):
    song_request = playback_controller.submit(db, "  Wonderwall\x07 ", "Oasis", requester="  ", message="play   it loud")

    assert song_request.status == RequestStatus.NEW
    assert song_request.title == "Wonderwall"
    assert song_request.requester is None
    assert song_request.message == "play it loud"


def test_submit_rejects_blank_title(db):
    with pytest.raises(InvalidSubmission):
        playback_controller.submit(db, "   ", "Oasis")


def test_promote_first_request(db, make_request):
    r1 = make_request(title="R1")

    now_playing, archived = playback_controller.promote(db, r1.id)

    assert archived is None
    assert now_playing.id == r1.id
    current = playback_controller.currently_playing(db)
    assert current.id == r1.id
    assert current.status == RequestStatus.PLAYING


def test_promote_archives_previous_request(db, make_request, read_statuses):
    r1 = make_request(title="R1")
    playback_controller.promote(db, r1.id)
    r2 = make_request(title="R2", minutes=5)

    now_playing, archived = playback_controller.promote(db, r2.id)

    assert archived.id == r1.id
    assert now_playing.id == r2.id
    assert read_statuses() == {r1.id: RequestStatus.ARCHIVED, r2.id: RequestStatus.PLAYING}
    assert playback_controller.currently_playing(db).id == r2.id


def test_promote_unknown_id_changes_nothing(db, make_request, read_statuses):
    playing = make_request(status=RequestStatus.PLAYING)
    before = read_statuses()

    with pytest.raises(NotFound):
        playback_controller.promote(db, 12345)

    assert read_statuses() == before
    assert playback_controller.currently_playing(db).id == playing.id


@pytest.mark.parametrize("status", [RequestStatus.ARCHIVED, RequestStatus.PLAYING])
def test_promote_rejects_request_that_is_not_new(db, make_request, read_statuses, status):
    target = make_request(status=status)
    before = read_statuses()

    with pytest.raises(InvalidTransition) as excinfo:
        playback_controller.promote(db, target.id)

    assert excinfo.value.current == status.value
    assert read_statuses() == before


def test_promote_that_loses_a_race_applies_nothing(db, make_request, read_statuses, monkeypatch):
    playing = make_request(status=RequestStatus.PLAYING)
    target = make_request(minutes=1)
    real_apply = song_request_repository.apply_transitions

    def apply_after_someone_else(session, transitions):
        # another writer moves the target on between our read and our write
        song_request_repository.set_status(session, target.id, RequestStatus.ARCHIVED)
        return real_apply(session, transitions)

    monkeypatch.setattr(song_request_repository, "apply_transitions", apply_after_someone_else)

    with pytest.raises(InvalidTransition):
        playback_controller.promote(db, target.id)

    assert read_statuses() == {playing.id: RequestStatus.PLAYING, target.id: RequestStatus.ARCHIVED}


def test_end_session_archives_playing(db, make_request, read_statuses):
    playing = make_request(status=RequestStatus.PLAYING)
    queued = make_request(minutes=1)

    archived = playback_controller.end_session(db)

    assert archived.id == playing.id
    assert read_statuses() == {playing.id: RequestStatus.ARCHIVED, queued.id: RequestStatus.NEW}
    assert playback_controller.currently_playing(db) is None


def test_end_session_twice_with_nothing_playing_is_a_noop(db, make_request, read_statuses):
    make_request()
    make_request(status=RequestStatus.ARCHIVED, minutes=1)
    before = read_statuses()

    assert playback_controller.end_session(db) is None
    assert playback_controller.end_session(db) is None
    assert read_statuses() == before


def test_currently_playing_reports_invariant_violation(db, make_request):
    make_request(status=RequestStatus.PLAYING)
    make_request(status=RequestStatus.PLAYING, minutes=1)

    with pytest.raises(InvariantViolation):
        playback_controller.currently_playing(db)


def test_promote_refuses_to_run_on_a_corrupt_state(db, make_request, read_statuses):
    make_request(status=RequestStatus.PLAYING)
    make_request(status=RequestStatus.PLAYING, minutes=1)
    target = make_request(minutes=2)
    before = read_statuses()

    with pytest.raises(InvariantViolation):
        playback_controller.promote(db, target.id)

    assert read_statuses() == before


def test_queue_and_archive_are_in_submission_order(db, make_request):
    third = make_request(title="third", minutes=30)
    first = make_request(title="first", minutes=10)
    second = make_request(title="second", minutes=20)
    old_b = make_request(title="old b", status=RequestStatus.ARCHIVED, minutes=5)
    old_a = make_request(title="old a", status=RequestStatus.ARCHIVED, minutes=1)

    assert [r.id for r in playback_controller.pending_queue(db)] == [first.id, second.id, third.id]
    assert [r.id for r in playback_controller.archive_history(db)] == [old_a.id, old_b.id]


def test_at_most_one_playing_across_a_session(db, make_request, read_statuses):
    requests = [make_request(title=f"R{i}", minutes=i) for i in range(5)]

    for song_request in requests:
        playback_controller.promote(db, song_request.id)
        assert playing_count(read_statuses()) == 1

    playback_controller.end_session(db)
    final = read_statuses()
    assert playing_count(final) == 0
    assert set(final.values()) == {RequestStatus.ARCHIVED}


def test_views_carry_operator_details(db, make_request):
    r1 = make_request(title="R1")
    make_request(title="R2", minutes=1)
    playback_controller.promote(db, r1.id)
    operator = OperatorIdentity(operator_id="abc", display_name="Sam")

    public = playback_controller.public_view(db)
    admin = playback_controller.admin_view(db, operator)

    assert public.is_authenticated is False
    assert public.now_playing.title == "R1"
    assert admin.is_authenticated is True
    assert admin.operator_name == "Sam"
    assert [item.title for item in admin.pending_queue] == ["R2"]
    assert admin.archive_history == []


def test_concurrent_promotions_leave_exactly_one_playing(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'concurrent.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    make_session = sessionmaker(bind=engine, autoflush=False)
    store = SongRequestRepository(SongRequest)
    controller = PlaybackController(store)

    with make_session() as setup:
        current_id = store.create(setup, "Now", "Band").id
        store.set_status(setup, current_id, RequestStatus.PLAYING)
        contenders = [store.create(setup, f"Next {i}", "Band").id for i in range(2)]

    barrier = threading.Barrier(len(contenders))
    outcomes = {}

    def promote(request_id):
        with make_session() as session:
            barrier.wait()
            try:
                controller.promote(session, request_id)
                outcomes[request_id] = "ok"
            except InvalidTransition:
                outcomes[request_id] = "rejected"

    threads = [threading.Thread(target=promote, args=(request_id,)) for request_id in contenders]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    with make_session() as check:
        final = {row.id: row.status for row in check.query(SongRequest).all()}
    engine.dispose()

    assert "ok" in outcomes.values()
    assert playing_count(final) == 1
    assert final[current_id] == RequestStatus.ARCHIVED


def test_promotions_from_two_workers_with_nothing_playing(tmp_path):
    # two worker processes each own a controller, so neither lock sees the other
    engine = create_engine(
        f"sqlite:///{tmp_path / 'workers.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    make_session = sessionmaker(bind=engine, autoflush=False)
    first_store = SongRequestRepository(SongRequest)
    first_worker = PlaybackController(first_store)
    second_worker = PlaybackController(SongRequestRepository(SongRequest))

    with make_session() as setup:
        first_id = first_store.create(setup, "First", "Band").id
        second_id = first_store.create(setup, "Second", "Band").id

    real_apply = first_store.apply_transitions

    def apply_after_other_worker(session, transitions):
        # both workers saw nothing Playing; the second one commits first
        with make_session() as other:
            second_worker.promote(other, second_id)
        return real_apply(session, transitions)

    first_store.apply_transitions = apply_after_other_worker

    with make_session() as session:
        with pytest.raises(InvalidTransition):
            first_worker.promote(session, first_id)

    with make_session() as check:
        final = {row.id: row.status for row in check.query(SongRequest).all()}
    engine.dispose()

    assert final == {first_id: RequestStatus.NEW, second_id: RequestStatus.PLAYING}

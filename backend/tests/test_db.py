from datetime import datetime, timedelta

import pytest
from sqlalchemy import text

from scribe.db.database import Database
from scribe.errors import BadRequestError
from scribe.models import Language, Transcript, TranscriptStatus


def test_in_memory_database_is_shared_between_sessions(database):
    with database.session() as db:
        assert db.execute(text("SELECT 1")).scalar() == 1

    other = Database("sqlite:///:memory:")
    other.create_tables()
    with other.session() as db:
        assert db.execute(text("SELECT COUNT(*) FROM users")).scalar() == 0
    other.dispose()


def test_user_store_round_trip(users):
    user = users.create("A", "a@x.com", "hash")

    assert users.get(user.id).email == "a@x.com"
    assert users.get_by_email("a@x.com").id == user.id
    assert users.get_by_email("nobody@x.com") is None


def test_duplicate_email_is_rejected(users):
    users.create("A", "a@x.com", "hash")
    with pytest.raises(BadRequestError, match="Email already registered"):
        users.create("B", "a@x.com", "hash")


def _job(transcripts, user_id, name="talk.mp3"):
    return transcripts.create(
        user_id=user_id,
        file_name=name,
        file_size=10,
        file_path=f"/tmp/{name}",
        language=Language.ENGLISH,
    )


def test_new_transcript_starts_processing_at_zero(users, transcripts):
    user = users.create("A", "a@x.com", "hash")
    job = _job(transcripts, user.id)

    assert job.status == TranscriptStatus.PROCESSING
    assert job.progress == 0
    assert job.transcript is None


def test_list_is_scoped_to_owner_and_newest_first(database, users, transcripts):
    alice = users.create("A", "a@x.com", "hash")
    bob = users.create("B", "b@x.com", "hash")
    older = _job(transcripts, alice.id, "older.mp3")
    newer = _job(transcripts, alice.id, "newer.mp3")
    _job(transcripts, bob.id, "bob.mp3")

    with database.session() as db:
        db.get(Transcript, older.id).created_at = datetime(2024, 1, 1)
        db.get(Transcript, newer.id).created_at = datetime(2024, 1, 1) + timedelta(hours=1)
        db.commit()

    listed = transcripts.list_for_user(alice.id)
    assert [j.id for j in listed] == [newer.id, older.id]


def test_get_and_delete_for_other_user_look_like_missing(users, transcripts):
    alice = users.create("A", "a@x.com", "hash")
    bob = users.create("B", "b@x.com", "hash")
    job = _job(transcripts, alice.id)

    assert transcripts.get_for_user(bob.id, job.id) is None
    assert transcripts.delete_for_user(bob.id, job.id) is False
    assert transcripts.get_for_user(alice.id, job.id) is not None


def test_progress_never_goes_backwards(users, transcripts):
    user = users.create("A", "a@x.com", "hash")
    job = _job(transcripts, user.id)

    assert transcripts.set_progress(job.id, 30)
    assert transcripts.set_progress(job.id, 10)

    assert transcripts.get(job.id).progress == 30


def test_terminal_states(users, transcripts):
    user = users.create("A", "a@x.com", "hash")
    done = _job(transcripts, user.id, "done.mp3")
    broken = _job(transcripts, user.id, "broken.mp3")
    transcripts.set_progress(broken.id, 30)

    transcripts.complete(done.id, "hello", 4)
    transcripts.fail(broken.id, "Error: boom")

    done = transcripts.get(done.id)
    assert (done.status, done.progress, done.transcript, done.duration) == (TranscriptStatus.COMPLETED, 100, "hello", 4)
    broken = transcripts.get(broken.id)
    assert (broken.status, broken.progress, broken.transcript) == (TranscriptStatus.FAILED, 0, "Error: boom")


def test_updates_of_missing_rows_are_no_ops(transcripts):
    assert transcripts.set_progress("missing", 10) is False
    assert transcripts.complete("missing", "text", 1) is False
    assert transcripts.fail("missing", "Error") is False

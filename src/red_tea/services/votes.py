"""Vote tally: one active green or red ballot per voter per post.

The post's ``green_count`` and ``red_count`` are derived from its ballots and
are only ever moved by ``vote_deltas``, in the same transaction as the
ballot change that justifies them.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from red_tea.models.post import Post, PostVote, VoteChoice
from red_tea.services.errors import RecordNotFoundError
from red_tea.services.moderation import Principal, require_active_user

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ballot:
    voter_id: int
    choice: VoteChoice


@dataclass(frozen=True)
class Tally:
    """A post's voter set and the counters derived from it."""

    ballots: tuple[Ballot, ...]
    green: int
    red: int

    def choice_of(self, voter_id: int) -> VoteChoice | None:
        for ballot in self.ballots:
            if ballot.voter_id == voter_id:
                return ballot.choice
        return None


def vote_deltas(previous: VoteChoice | None, choice: VoteChoice | None) -> tuple[int, int]:
    """Counter changes (green, red) for replacing ``previous`` with ``choice``."""
    green = red = 0
    if previous == VoteChoice.GREEN:
        green -= 1
    elif previous == VoteChoice.RED:
        red -= 1
    if choice == VoteChoice.GREEN:
        green += 1
    elif choice == VoteChoice.RED:
        red += 1
    return green, red


def apply_ballot(tally: Tally, voter_id: int, choice: VoteChoice | None) -> Tally:
    """Scan-and-replace a voter's ballot.

    Any existing ballot from ``voter_id`` is removed and its counter
    decremented; a non-null ``choice`` is then appended and counted. Passing
    ``None`` is the only way to retract.
    """
    ballots = list(tally.ballots)
    previous = None
    for index, ballot in enumerate(ballots):
        if ballot.voter_id == voter_id:
            previous = ballots.pop(index).choice
            break

    if choice is not None:
        ballots.append(Ballot(voter_id=voter_id, choice=choice))

    green, red = vote_deltas(previous, choice)
    return Tally(ballots=tuple(ballots), green=tally.green + green, red=tally.red + red)


def count_ballots(ballots: Sequence[Ballot]) -> tuple[int, int]:
    """Recount (green, red) from scratch."""
    green = sum(1 for b in ballots if b.choice == VoteChoice.GREEN)
    return green, len(ballots) - green


async def load_tally(db: AsyncSession, post: Post) -> Tally:
    """Read a post's voter set in cast order, with its stored counters."""
    result = await db.execute(
        select(PostVote).where(PostVote.post_id == post.id).order_by(PostVote.id)
    )
    ballots = tuple(
        Ballot(voter_id=vote.voter_id, choice=VoteChoice(vote.choice))
        for vote in result.scalars().all()
    )
    return Tally(ballots=ballots, green=post.green_count, red=post.red_count)


async def cast_vote(
    db: AsyncSession,
    principal: Principal,
    post_id: int,
    choice: VoteChoice | None,
) -> Post:
    """Set, change or retract the principal's vote on a post.

    The post row is read with ``FOR UPDATE`` so concurrent voters on the same
    post serialize in databases that support row locks.

    Raises:
        RecordNotFoundError: If the voter or the post does not exist.
        UnauthorizedError: If the voter is banned.
    """
    voter_id = require_active_user(principal)

    result = await db.execute(select(Post).where(Post.id == post_id).with_for_update())
    post = result.scalar_one_or_none()
    if post is None:
        raise RecordNotFoundError("Post not found")

    existing_result = await db.execute(
        select(PostVote).where(PostVote.post_id == post_id, PostVote.voter_id == voter_id)
    )
    existing = existing_result.scalar_one_or_none()
    previous = VoteChoice(existing.choice) if existing else None

    if existing is not None:
        await db.delete(existing)
        # Flush the removal before inserting the replacement ballot
        await db.flush()

    if choice is not None:
        db.add(PostVote(post_id=post_id, voter_id=voter_id, choice=choice))

    green, red = vote_deltas(previous, choice)
    post.green_count += green
    post.red_count += red
    await db.flush()

    logger.debug("Vote on post %s by user %s: %s -> %s", post_id, voter_id, previous, choice)
    return post


async def retract_all_ballots(db: AsyncSession, voter_id: int) -> int:
    """Retract every ballot a user holds, keeping each post's counters in step.

    Returns:
        The number of ballots removed.
    """
    result = await db.execute(select(PostVote).where(PostVote.voter_id == voter_id))
    ballots = result.scalars().all()

    for ballot in ballots:
        post_result = await db.execute(
            select(Post).where(Post.id == ballot.post_id).with_for_update()
        )
        post = post_result.scalar_one()
        green, red = vote_deltas(VoteChoice(ballot.choice), None)
        post.green_count += green
        post.red_count += red

    await db.execute(delete(PostVote).where(PostVote.voter_id == voter_id))
    await db.flush()
    return len(ballots)

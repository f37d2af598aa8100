"""Database seeder: users, stories, Show/Ask HN posts, jobs and comment threads."""
import asyncio
import argparse
import random
import time
from datetime import datetime, timezone, timedelta

from sqlalchemy import insert

from hnclone.database import engine, async_session, Base
from hnclone.models import Comment, NewsItem, User, comment_upvotes, news_item_upvotes
from hnclone.security import hash_password

SEED_PASSWORD = "password123"

TOPICS = ["Python", "PostgreSQL", "Redis", "GraphQL", "Rust", "SQLite", "Kubernetes",
          "compilers", "type systems", "databases", "distributed systems", "static sites"]

SITES = ["https://example.com", "https://blog.example.org", "https://www.example.net"]


def _title(kind: str, topic: str, i: int) -> str:
    if kind == "show":
        return f"Show HN: A tiny {topic} toolkit I built ({i})"
    if kind == "ask":
        return f"Ask HN: How do you learn {topic}? ({i})"
    if kind == "job":
        return f"Example Corp (YC S{i % 20:02d}) is hiring {topic} engineers"
    return f"Notes on {topic}, part {i}"


async def seed(small: bool = False):
    num_users = 10 if small else 100
    num_items = 120 if small else 3000
    max_comments = 4 if small else 12

    print(f"Seeding: {num_users} users, {num_items} news items, up to {max_comments} comments each")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    password_hash = hash_password(SEED_PASSWORD)

    async with async_session() as session:
        users = []
        for i in range(num_users):
            user = User(
                id=f"user{i:04d}",
                password_hash=password_hash,
                email=f"user{i:04d}@example.com",
                about=f"I am test user number {i}.",
                karma=random.randint(1, 5000),
            )
            session.add(user)
            users.append(user)
        await session.flush()
        print(f"  Created {len(users)} users (password: {SEED_PASSWORD!r})")

        total_comments = 0
        now = datetime.now(timezone.utc)
        for i in range(num_items):
            kind = random.choices(["story", "show", "ask", "job"], weights=[70, 12, 12, 6])[0]
            submitter = random.choice(users)
            voters = random.sample(users, k=random.randint(1, min(len(users), 40)))
            if submitter not in voters:
                voters.append(submitter)

            item = NewsItem(
                title=_title(kind, random.choice(TOPICS), i),
                url=None if kind == "ask" else f"{random.choice(SITES)}/posts/{i}",
                text=f"What has worked for you? Question {i}." if kind == "ask" else None,
                submitter_id=submitter.id,
                is_job=kind == "job",
                upvote_count=len(voters),
                creation_time=now - timedelta(minutes=random.randint(0, 60 * 24 * 30)),
            )
            session.add(item)
            await session.flush()

            await session.execute(
                insert(news_item_upvotes),
                [{"news_item_id": item.id, "user_id": voter.id} for voter in voters],
            )

            if kind == "job":
                continue

            thread: list[Comment] = []
            for _ in range(random.randint(0, max_comments)):
                parent = random.choice(thread) if thread and random.random() < 0.5 else None
                comment = Comment(
                    text=f"Comment by a reader on item {item.id}.",
                    submitter_id=random.choice(users).id,
                    news_item_id=item.id,
                    parent_comment_id=parent.id if parent else None,
                    creation_time=item.creation_time + timedelta(minutes=random.randint(1, 600)),
                )
                session.add(comment)
                await session.flush()
                thread.append(comment)
                total_comments += 1

                fans = random.sample(users, k=random.randint(0, 3))
                if fans:
                    await session.execute(
                        insert(comment_upvotes),
                        [{"comment_id": comment.id, "user_id": fan.id} for fan in fans],
                    )

            if (i + 1) % 500 == 0:
                print(f"  {i + 1} news items created")

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Users: {num_users}")
    print(f"  News items: {num_items}")
    print(f"  Comments: {total_comments}")


def main():
    parser = argparse.ArgumentParser(description="Seed the Hacker News clone database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (120 news items)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()

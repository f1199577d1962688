"""Database seeder: demo users, posts, comments, likes and friendships."""
import argparse
import asyncio
import random
import time

from socialnet.concepts import (
    AuthenticatingConcept,
    CommentingConcept,
    FriendingConcept,
    LikingConcept,
    PostingConcept,
)
from socialnet.database import async_session, create_tables

COLORS = [None, "#ffcc00", "#88c0d0", "#a3be8c", "#bf616a"]


async def seed(small: bool = False):
    num_users = 10 if small else 50
    num_posts = 100 if small else 5000
    max_comments = 2 if small else 5

    print(f"Seeding: {num_users} users, {num_posts} posts, up to {max_comments} comments each")
    start = time.perf_counter()

    await create_tables(drop_first=True)

    authing = AuthenticatingConcept()
    posting = PostingConcept()
    commenting = CommentingConcept()
    liking = LikingConcept()
    friending = FriendingConcept()

    async with async_session() as db:
        users = []
        for i in range(num_users):
            created = await authing.create(db, f"user_{i:04d}", "password")
            users.append(created["user"]["id"])
        print(f"  Created {len(users)} users (password: 'password')")

        total_comments = total_likes = 0
        for i in range(num_posts):
            color = random.choice(COLORS)
            options = {"background_color": color} if color else None
            post = await posting.create(
                db, random.choice(users), f"Post {i}: thoughts on the day.", options
            )
            pid = post["post"]["id"]

            for _ in range(random.randint(0, max_comments)):
                await commenting.create(db, pid, random.choice(users), "Nice post!")
                total_comments += 1
            for liker in random.sample(users, k=random.randint(0, min(5, len(users)))):
                await liking.add_like(db, pid, liker)
                total_likes += 1

            if (i + 1) % 500 == 0:
                print(f"  {i + 1} posts created")

        # Every user befriends the next one; the one after that gets a pending request.
        for i, user in enumerate(users):
            friend = users[(i + 1) % len(users)]
            if user < friend:
                await friending.send_request(db, user, friend)
                await friending.accept_request(db, user, friend)
        for i, user in enumerate(users[:-2]):
            await friending.send_request(db, user, users[i + 2])

        await db.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Users: {num_users}")
    print(f"  Posts: {num_posts}")
    print(f"  Comments: {total_comments}")
    print(f"  Likes: {total_likes}")


def main():
    parser = argparse.ArgumentParser(description="Seed the social network database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (100 posts)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()

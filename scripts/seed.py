"""Fill the database with demo users, articles and engagement."""
import asyncio
import argparse
import random
import time
from quill import security
from quill.database import engine, async_session, Base
from quill.models import AccountType, Article, Bookmark, FavoriteArticle, Reaction, ReactionType, Tag, User
from quill.services.article_service import compute_read_time, slugify

TAGS = ["python", "fastapi", "postgresql", "redis", "docker", "testing",
        "security", "devops", "writing", "design", "career", "open-source"]

DEMO_PASSWORD = "password123"

WORDS = ("the quick brown fox jumps over lazy dogs while writers draft "
         "articles about code review testing deploys and careers").split()


def _paragraphs(count: int) -> str:
    return "\n\n".join(
        " ".join(random.choices(WORDS, k=random.randint(60, 180))) for _ in range(count)
    )


async def seed(small: bool = False):
    num_users = 5 if small else 25
    num_articles = 20 if small else 300

    print(f"Seeding: {num_users} users, {num_articles} articles")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        tags = [Tag(name=name) for name in TAGS]
        session.add_all(tags)

        # One hash for everybody keeps seeding fast; every account signs in
        # with DEMO_PASSWORD.
        password_hash = security.hash_password(DEMO_PASSWORD)
        users = [
            User(
                first_name=f"Writer{i}",
                last_name="Demo",
                email=f"writer{i:03d}@example.com",
                password=password_hash,
                account_type=AccountType.LOCAL,
            )
            for i in range(num_users)
        ]
        session.add_all(users)
        await session.flush()
        print(f"  Created {len(tags)} tags and {len(users)} users")

        articles = []
        for i in range(num_articles):
            title = f"Notes {i}: shipping {random.choice(TAGS)} in production"
            body = _paragraphs(random.randint(1, 6))
            image = f"https://images.example.com/{i}.jpg" if random.random() > 0.5 else None
            article = Article(
                slug=f"{slugify(title)}-{i}",
                title=title,
                description=f"What we learned about {random.choice(TAGS)}.",
                body=body,
                image=image,
                read_time=compute_read_time(body, image),
                author_id=random.choice(users).id,
            )
            article.tags = random.sample(tags, k=random.randint(1, 3))
            articles.append(article)
        session.add_all(articles)
        await session.flush()
        print(f"  Created {len(articles)} articles")

        engagement = 0
        for user in users:
            for article in random.sample(articles, k=min(len(articles), random.randint(3, 10))):
                session.add(Reaction(
                    user_id=user.id,
                    article_id=article.id,
                    reaction=random.choice(list(ReactionType)),
                ))
                if random.random() > 0.6:
                    session.add(Bookmark(user_id=user.id, article_slug=article.slug))
                if random.random() > 0.7:
                    session.add(FavoriteArticle(user_id=user.id, article_slug=article.slug))
                engagement += 1
        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Reactions: {engagement}")
    print(f"  Sign in with any writerNNN@example.com / {DEMO_PASSWORD}")


def main():
    parser = argparse.ArgumentParser(description="Seed the Quill database")
    parser.add_argument("--small", action="store_true", help="Use a small dataset (20 articles)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()

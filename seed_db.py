import random
from datetime import date, timedelta

from auth import sign_up
from config import configure_logging
from database import SessionLocal, User, init_db
from repository import create_goal, create_transaction, deposit_to_goal, list_categories

DEMO_EMAIL = "demo@pocketwise.vn"
DEMO_PASSWORD = "demo123"

SAMPLE_SPEND = {
    "Ăn uống": ["Bánh mì", "Trà sữa", "Cơm trưa", "Phở"],
    "Di chuyển": ["Xe buýt", "Grab về nhà"],
    "Học tập": ["Photo tài liệu", "Bút và vở"],
    "Giải trí": ["Xem phim", "Game online"],
    "Mua sắm": ["Áo thun", "Ốp điện thoại"],
}


def seed_demo(days: int = 30):
    init_db()
    db = SessionLocal()

    # Check if the demo account exists
    if db.query(User).filter(User.email == DEMO_EMAIL).first():
        print("Demo user already exists. Skipping seed.")
        db.close()
        return

    ctx = sign_up(db, DEMO_EMAIL, DEMO_PASSWORD, "Bạn Demo")
    categories = {c.name: c.id for c in list_categories(db)}

    rng = random.Random(42)
    today = date.today()
    count = 0
    for offset in range(days):
        day = today - timedelta(days=offset)
        for _ in range(rng.randint(0, 3)):
            name = rng.choice(list(SAMPLE_SPEND))
            amount = rng.randrange(10_000, 80_000, 1_000)
            create_transaction(db, ctx, amount, rng.choice(SAMPLE_SPEND[name]), day, categories[name])
            count += 1

    goal = create_goal(db, ctx, "Mua tai nghe mới", 800_000, "🎧", today + timedelta(days=60))
    deposit_to_goal(db, ctx, goal.id, 250_000)

    print(f"Seeded {DEMO_EMAIL} / {DEMO_PASSWORD} with {count} transactions.")
    db.close()


if __name__ == "__main__":
    configure_logging()
    seed_demo()

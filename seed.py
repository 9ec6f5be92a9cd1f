from datetime import datetime, timezone, timedelta
from gamebrain import create_app
from gamebrain.firebase_init import get_auth
from gamebrain import firestore_dao as dao
from gamebrain.firestore_models import Build, Game, Guide


def seed_database():
    app = create_app()
    with app.app_context():
        auth = get_auth()
        password = 'password123'
        now = datetime.now(timezone.utc)

        print("Creating users...")

        def create_firebase_user(email, username):
            try:
                fb_user = auth.create_user(email=email, password=password, display_name=username)
            except auth.EmailAlreadyExistsError:
                fb_user = auth.get_user_by_email(email)
            dao.create_user(fb_user.uid, email, username)
            return fb_user.uid

        alice_uid = create_firebase_user('alice@example.com', 'alice')
        bob_uid = create_firebase_user('bob@example.com', 'bob')

        print("Creating games...")
        games = {}
        for name, description in [
            ('Elden Ring', 'Open-world action RPG set in the Lands Between.'),
            ('Hollow Knight', 'Hand-drawn metroidvania in the ruined kingdom of Hallownest.'),
            ('Stardew Valley', 'Farming and life sim in Pelican Town.'),
        ]:
            games[name] = dao.create_game(Game(name=name, description=description).to_dict())

        print("Creating guides...")
        guide_ids = []
        samples = [
            ('Elden Ring', 'Beating Margit without summons', alice_uid, 'alice', 14),
            ('Elden Ring', 'Early game bleed build', bob_uid, 'bob', 31),
            ('Elden Ring', 'Where to find every Smithing Stone bell', alice_uid, 'alice', 8),
            ('Hollow Knight', 'Charm loadouts for the Pantheon', bob_uid, 'bob', 22),
            ('Hollow Knight', 'Grub locations, area by area', alice_uid, 'alice', 5),
            ('Stardew Valley', 'Year one profit plan', alice_uid, 'alice', 40),
        ]
        for i, (game, title, author_id, author_name, likes) in enumerate(samples):
            guide_ids.append(dao.create_guide(Guide(
                game_id=games[game],
                title=title,
                content=f'{title}. Step-by-step notes, tips and common mistakes to avoid.',
                author_id=author_id,
                author_name=author_name,
                author_verified=author_id == alice_uid,
                likes_count=likes,
                created_at=now - timedelta(days=i, hours=i * 3),
            ).to_dict()))

        print("Creating builds...")
        dao.create_build(Build(
            user_id=alice_uid,
            game_id=games['Elden Ring'],
            title='Moonveil Samurai',
            description='Dex/Int hybrid around the Moonveil katana.',
        ).to_dict())
        dao.create_build(Build(
            user_id=bob_uid,
            game_id=games['Hollow Knight'],
            title='Glass Soul',
            description='Spell-focused charm set.',
        ).to_dict())

        print("Creating favorites...")
        dao.create_favorite(alice_uid, guide_ids[1])
        dao.create_favorite(bob_uid, guide_ids[0])

        print("\n" + "=" * 60)
        print("    Demo accounts")
        print("=" * 60)
        print("  alice@example.com / password123")
        print("  bob@example.com   / password123")
        print("\n" + "=" * 60)
        print("Seed complete!")


if __name__ == '__main__':
    seed_database()

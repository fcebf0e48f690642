"""Demo records loaded into the mock backend on initialize()."""

from featuresynth.models import Application, Board, User

# (name, email, password)
SEED_USERS = [
    ("Demo User", "user@example.com", "password123"),
    ("Alice Johnson", "alice@example.com", "alicepass"),
    ("Bob Smith", "bob@example.com", "bobpass1"),
]

# (name, description)
SEED_BOARDS = [
    ("Product Roadmap", "Quarterly planning"),
    ("Bug Triage", "Incoming issues"),
]

# (name, email, loan type, amount, index into the status steps)
SEED_APPLICATIONS = [
    ("Anna Green", "anna@example.com", "Personal", 25_000, 0),
    ("Mike Lee", "mike@example.com", "Home", 250_000, 1),
    ("Becca Troy", "becca@example.com", "Personal", 12_000, 2),
]


def seed_users(new_id) -> list[User]:
    return [User(id=new_id("user"), name=n, email=e, password=p) for n, e, p in SEED_USERS]


def seed_boards(new_id) -> list[Board]:
    return [Board(id=new_id("board"), name=n, description=d) for n, d in SEED_BOARDS]


def seed_applications(new_id, status_steps: tuple[str, ...]) -> list[Application]:
    last = len(status_steps) - 1
    return [
        Application(
            id=new_id("app"),
            name=name,
            email=email,
            loan_type=loan_type,
            amount=amount,
            status=status_steps[min(step, last)],
        )
        for name, email, loan_type, amount, step in SEED_APPLICATIONS
    ]

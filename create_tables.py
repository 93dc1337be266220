from schoolhub.db.base import Base
from schoolhub.db.session import engine
from schoolhub.db.models import Message, Notification, User  # noqa: F401

if __name__ == "__main__":
    print("Creating tables...")
    Base.metadata.create_all(bind=engine)
    print("Tables created.")

# File: config/init_db.py

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from kontrak import create_app
from kontrak.db.models import Base
from kontrak.db.seed import seed_initial_data
from kontrak.db.session import get_engine, get_session

if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        print("⏳ Creating database tables...")
        Base.metadata.create_all(bind=get_engine())
        print("✅ Tables created.")
        seed_initial_data(get_session())
        print("✅ Initial data ready.")

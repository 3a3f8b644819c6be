from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Models register themselves on import; app.db.models imports all of them

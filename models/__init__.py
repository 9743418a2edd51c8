from models.db_storage import DBStorage

# Process-wide storage; the app factory binds it to DATABASE_URL and calls reload()
storage = DBStorage()

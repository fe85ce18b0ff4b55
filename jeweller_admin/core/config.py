import os
from dotenv import load_dotenv

load_dotenv(override=True)

class Config:
    """
    Base configuration for the Jeweller admin backend.
    Flask app.config values take precedence over these at init_app time.
    """
    # Get DB_DIR from environment, or use a default if not set
    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))

    # Structured log sink (app_logs table)
    LOG_DB = os.getenv('LOG_DB', os.path.join(DB_DIR, "app_logs.db"))

    # Firebase service account, split across env vars like the mobile backend
    FIREBASE_PROJECT_ID = os.getenv('FIREBASE_PROJECT_ID')
    FIREBASE_CLIENT_EMAIL = os.getenv('FIREBASE_CLIENT_EMAIL')
    FIREBASE_PRIVATE_KEY = os.getenv('FIREBASE_PRIVATE_KEY')
    FIREBASE_PRIVATE_KEY_ID = os.getenv('FIREBASE_PRIVATE_KEY_ID')
    FIREBASE_CLIENT_ID = os.getenv('FIREBASE_CLIENT_ID')

    # Firestore collection names
    ARTICLES_COLLECTION = "articles"
    USERS_COLLECTION = "users"
    CATEGORIES_COLLECTION = "categories"
    LOCATIONS_COLLECTION = "locations"

    # Push settings
    # 'expo' posts to the Expo push gateway, 'fcm' goes through firebase-admin
    PUSH_PROVIDER = os.getenv('PUSH_PROVIDER', 'expo')
    EXPO_PUSH_URL = os.getenv('EXPO_PUSH_URL', 'https://exp.host/--/api/v2/push/send')
    EXPO_ACCESS_TOKEN = os.getenv('EXPO_ACCESS_TOKEN')
    PUSH_BATCH_SIZE = int(os.getenv('PUSH_BATCH_SIZE', '100'))
    PUSH_TIMEOUT = int(os.getenv('PUSH_TIMEOUT', '30'))
    PUSH_MAX_WORKERS = int(os.getenv('PUSH_MAX_WORKERS', '8'))
    PUSH_BRAND_NAME = os.getenv('PUSH_BRAND_NAME', 'TheNewJeweller')
    PUSH_CHANNEL_ID = os.getenv('PUSH_CHANNEL_ID', 'new-articles')

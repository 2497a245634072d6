from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Hosted backend (Supabase-compatible) connection
    SUPABASE_URL: str
    SUPABASE_ANON_KEY: str

    # Signs the browser session cookie
    SESSION_SECRET_KEY: str

    HOTELS_TABLE: str = "hotels"
    ROLES_TABLE: str = "user_roles"
    IMAGE_BUCKET: str = "hotel-images"

    DEFAULT_HOTEL_IMAGE: str = "/static/default-hotel.svg"

    LOG_LEVEL: str = "INFO"

    # Used by the `nightout` console script
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    model_config = SettingsConfigDict(env_file=".env")


settings = Settings()

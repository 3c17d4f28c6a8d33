from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	# Auth configuration
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	access_token_expire_minutes: int = Field(default=60 * 24 * 7, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")
	# Optional dev account created at startup
	seed_email: str | None = Field(default=None, validation_alias="SEED_EMAIL")
	seed_password_plain: str | None = Field(default=None, validation_alias="SEED_PASSWORD")
	# Guest login shares a single account
	allow_guest: bool = Field(default=True, validation_alias="ALLOW_GUEST")
	guest_user_id: str = Field(default="guest", validation_alias="GUEST_USER_ID")

	# Calendar-day comparisons ("due today") are evaluated in this zone
	schedule_timezone: str = Field(default="UTC", validation_alias="SCHEDULE_TIMEZONE")

	# Logging
	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
	log_format: str = Field(default="text", validation_alias="LOG_FORMAT")

	# Comma separated list, "*" allows any origin
	cors_origins: str = Field(default="*", validation_alias="CORS_ORIGINS")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

	@property
	def cors_origin_list(self) -> list[str]:
		return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

settings = Settings()

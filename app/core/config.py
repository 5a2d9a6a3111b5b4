from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
	model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

	APP_NAME: str = Field(default="Marketplace Rentals API")
	DEBUG: bool = Field(default=False)
	API_PREFIX: str = Field(default="")
	LOG_LEVEL: str = Field(default="INFO")

	# Database
	DATABASE_URL: str = Field(default="")

	# Auth / JWT issued by the hosted auth platform
	JWT_SECRET: str = Field(default="dev-change-me")
	JWT_ALGORITHM: str = Field(default="HS256")
	JWT_AUDIENCE: str = Field(default="authenticated")
	ACCESS_TOKEN_EXPIRES_MINUTES: int = Field(default=60)

	# Object storage (one container per bucket)
	CDN_BASE_URL: str = Field(default="")
	AZURE_STORAGE_ACCOUNT: str = Field(default="")
	AZURE_STORAGE_KEY: str = Field(default="")
	AZURE_STORAGE_CONN_STRING: str = Field(default="")
	BUCKET_RENTAL_MEDIA: str = Field(default="rental-property-media")
	BUCKET_MARKETPLACE_MEDIA: str = Field(default="marketplace-media")
	BUCKET_PROFILE_PICTURES: str = Field(default="profile-pictures")

	# Subscriptions
	ENABLE_SUBSCRIPTIONS: bool = Field(default=False)
	GRACE_PERIOD_DAYS: int = Field(default=7)
	SUBSCRIPTION_CURRENCY: str = Field(default="XAF")

	STANDARD_MAX_POSTS_PER_MONTH: int = Field(default=10)
	STANDARD_MAX_IMAGES_PER_POST: int = Field(default=5)
	STANDARD_MAX_VIDEOS_PER_POST: int = Field(default=1)
	STANDARD_PRICE: str = Field(default="5000")

	PREMIUM_MAX_POSTS_PER_MONTH: int = Field(default=20)
	PREMIUM_MAX_IMAGES_PER_POST: int = Field(default=10)
	PREMIUM_MAX_VIDEOS_PER_POST: int = Field(default=2)
	PREMIUM_PRICE: str = Field(default="10000")

	# Limits applied when ENABLE_SUBSCRIPTIONS is off
	FREE_ACCESS_MAX_POSTS_PER_MONTH: int = Field(default=999)
	FREE_ACCESS_MAX_IMAGES_PER_POST: int = Field(default=5)
	FREE_ACCESS_MAX_VIDEOS_PER_POST: int = Field(default=1)
	FREE_ACCESS_HAS_ANALYTICS: bool = Field(default=False)

	# Media ceilings
	MAX_IMAGE_SIZE_MB: int = Field(default=5)
	MAX_VIDEO_SIZE_MB: int = Field(default=20)
	MAX_VIDEO_DURATION_SECONDS: int = Field(default=30)

	# Listing write sequence
	WRITE_TIMEOUT_SECONDS: float = Field(default=30.0)

	# Payment edge function
	PAYMENT_FUNCTION_URL: str = Field(default="")
	PAYMENT_FUNCTION_KEY: str = Field(default="")
	PAYMENT_TIMEOUT_SECONDS: float = Field(default=60.0)

	# Azure Monitor / Application Insights
	AZURE_MONITOR_CONN_STR: str = Field(default="")
	ENABLE_APP_INSIGHTS: bool = Field(default=True)
	SAMPLING_RATIO: float = Field(default=1.0)


settings = Settings()

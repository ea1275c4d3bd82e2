"""
User Onboarding Module

Identity and PIN credential management with clear separation of concerns:
- domain: Domain models
- repositories: Data access
- engagement: OTP, SMS and email adapters
- services: Business logic
- auth: Caller identification and permissions
- api: REST API endpoints
"""

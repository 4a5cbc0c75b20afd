from typing import Optional, Union

from pydantic import BaseModel, ConfigDict


class RegistrationRequest(BaseModel):
    email_address: str
    password: str
    password_confirmation: str


class LoginRequest(BaseModel):
    email_address: str
    password: str


class TabRequest(BaseModel):
    # Either "12" or "pr_12"; missing still opens the bare "pr_" tab.
    pr_id: Optional[Union[int, str]] = None


class RepositoryCreateRequest(BaseModel):
    owner: str
    name: str


class ReviewCreateRequest(BaseModel):
    repository_id: int
    external_pr_number: Optional[Union[int, str]] = None
    pr_title: Optional[str] = None
    pr_url: Optional[str] = None
    llm_context_summary: Optional[str] = None


class ReviewUpdateRequest(BaseModel):
    action_type: Optional[str] = None
    pr_title: Optional[str] = None
    pr_url: Optional[str] = None
    llm_context_summary: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class MessageCreateRequest(BaseModel):
    content: Optional[str] = None


class ProfileUpdateRequest(BaseModel):
    email_address: str


class PasswordUpdateRequest(BaseModel):
    current_password: str
    password: str
    password_confirmation: str


class GitHubTokenRequest(BaseModel):
    github_token: Optional[str] = None


class LlmApiKeyRequest(BaseModel):
    llm_provider: str
    api_key: str
    full_name: Optional[str] = None
    description: Optional[str] = None


class LlmApiKeyUpdateRequest(BaseModel):
    api_key: Optional[str] = None
    full_name: Optional[str] = None
    description: Optional[str] = None


class LlmPreferencesRequest(BaseModel):
    default_llm_provider: Optional[str] = None
    default_llm_model: Optional[str] = None

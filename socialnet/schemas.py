from pydantic import BaseModel, Field


# --- Users / session ---

class Credentials(BaseModel):
    username: str = Field(max_length=100)
    password: str


class UsernameUpdate(BaseModel):
    username: str = Field(max_length=100)


class PasswordUpdate(BaseModel):
    current_password: str
    new_password: str


# --- Posts ---

class PostOptions(BaseModel):
    background_color: str | None = Field(None, max_length=32)


class PostCreate(BaseModel):
    content: str
    options: PostOptions | None = None


class PostUpdate(BaseModel):
    content: str | None = None
    options: PostOptions | None = None


# --- Comments ---

class CommentOptions(BaseModel):
    background_color: str | None = Field(None, max_length=32)


class CommentCreate(BaseModel):
    content: str
    options: CommentOptions | None = None


class CommentUpdate(BaseModel):
    content: str | None = None
    options: CommentOptions | None = None

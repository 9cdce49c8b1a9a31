# server/manage_users.py

import typer
from pydantic import ValidationError
from tabulate import tabulate
from database import SessionLocal, init_db
from models.user import User, ROLES, ROLE_USER
from core.security import get_password_hash
from api.auth import RegisterRequest


cli = typer.Typer(help="Sweet Shop user management")


def _check_role(role: str) -> str:
    if role not in ROLES:
        raise typer.BadParameter(f"role must be one of: {', '.join(ROLES)}")
    return role


def _find(s, username: str) -> User:
    user = s.query(User).filter(User.username == username).first()
    if not user:
        typer.echo(f"User '{username}' not found")
        raise typer.Exit(1)
    return user


@cli.callback()
def main():
    init_db()


@cli.command()
def add(
    username: str = typer.Argument(...),
    email: str = typer.Argument(...),
    role: str = typer.Option(ROLE_USER, callback=_check_role, help="user or admin"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
):
    """Create a new user."""
    try:
        req = RegisterRequest(username=username, email=email, password=password)
    except ValidationError as e:
        for err in e.errors():
            typer.echo(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}")
        raise typer.Exit(1)

    email = req.email.lower()
    with SessionLocal() as s:
        exists = s.query(User).filter((User.username == req.username) | (User.email == email)).first()
        if exists:
            typer.echo("User with this email or username already exists")
            raise typer.Exit(1)
        s.add(User(
            username=req.username,
            email=email,
            hashed_password=get_password_hash(req.password),
            role=role,
        ))
        s.commit()
    typer.echo(f"Created {role} '{req.username}'")


@cli.command()
def promote(
    username: str,
    role: str = typer.Option("admin", callback=_check_role, help="role to assign"),
):
    """Change the role of an existing user."""
    with SessionLocal() as s:
        user = _find(s, username)
        user.role = role
        s.commit()
    typer.echo(f"'{username}' is now {role}")


@cli.command()
def passwd(
    username: str,
    password: str = typer.Option(..., prompt="New password", hide_input=True, confirmation_prompt=True),
):
    """Reset a user's password."""
    with SessionLocal() as s:
        user = _find(s, username)
        user.hashed_password = get_password_hash(password)
        s.commit()
    typer.echo("Password changed")


@cli.command()
def delete(username: str):
    """Delete a user."""
    with SessionLocal() as s:
        s.delete(_find(s, username))
        s.commit()
    typer.echo(f"Deleted '{username}'")


@cli.command(name="list")
def list_users():
    """List all users."""
    with SessionLocal() as s:
        rows = [(u.id, u.username, u.email, u.role) for u in s.query(User).order_by(User.id).all()]
    typer.echo(tabulate(rows, headers=["id", "username", "email", "role"]))


if __name__ == "__main__":
    cli()

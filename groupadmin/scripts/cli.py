"""
A simple CLI for running a sample server.
"""

import asyncio
import os
import sys
import time
from multiprocessing import Process

import uvicorn

USAGE = (
    "Supported commands are groupadmin run dev, groupadmin run prod, "
    "groupadmin setup, or groupadmin token {user_id} {organization_id}"
)


def run_server(**kwargs):
    for k, v in kwargs.items():
        os.environ[k] = v

    uvicorn.run("groupadmin.api.app:app", host="0.0.0.0")


def mint_token(user_id: str, organization_id: str) -> str:
    """
    Sign an access token holding every API claim, for local development.
    """
    from groupadmin.config.settings import Settings
    from groupadmin.core.claims import ALL_CLAIMS
    from groupadmin.core.tokens import build_access_token_payload, sign_payload

    settings = Settings()

    payload = build_access_token_payload(
        user_id=user_id,
        organization_id=organization_id,
        user_type="Admin",
        claims=set(ALL_CLAIMS),
        validity=settings.access_token_expiry,
    )

    return sign_payload(
        secret=settings.token_secret,
        algorithm=settings.token_algorithm,
        payload=payload,
    )


def main():
    try:
        command = sys.argv[1]
    except IndexError:
        print(USAGE)
        exit(1)

    run = command == "run"
    setup = command == "setup"
    token = command == "token"

    if run:
        try:
            dev = sys.argv[2] == "dev"
            prod = sys.argv[2] == "prod"
        except IndexError:
            print(USAGE)
            exit(1)

        if dev:
            from testcontainers.postgres import PostgresContainer

            from groupadmin.api.setup import EXAMPLE_ADMIN_USER_ID

            with PostgresContainer() as container:
                print(
                    f"Container details: username={container.username}, password={container.password}, port={container.get_exposed_port(container.port)}"
                )

                environment = {
                    "GROUPADMIN_DATABASE_TYPE": "postgres",
                    "GROUPADMIN_DATABASE_USER": container.username,
                    "GROUPADMIN_DATABASE_PASSWORD": container.password,
                    "GROUPADMIN_DATABASE_PORT": str(
                        container.get_exposed_port(container.port)
                    ),
                    "GROUPADMIN_DATABASE_HOST": "localhost",
                    "GROUPADMIN_DATABASE_DB": container.dbname,
                    "GROUPADMIN_DATABASE_ECHO": "False",
                    "GROUPADMIN_CREATE_EXAMPLE_DATA": "True",
                }

                background_process = Process(target=run_server, kwargs=environment)
                background_process.start()

                time.sleep(1)

                from groupadmin.config.settings import Settings

                print(
                    "Example admin token: "
                    + mint_token(
                        user_id=EXAMPLE_ADMIN_USER_ID,
                        organization_id=Settings().example_organization_id,
                    )
                )

                while True:
                    time.sleep(1)

        if prod:
            run_server()

        print(USAGE)
        exit(1)

    if setup:
        from groupadmin.api.setup import initial_setup
        from groupadmin.config.settings import Settings

        settings = Settings()
        asyncio.run(initial_setup(settings=settings))

        print("Setup complete, please restart the container or application")
        exit(0)

    if token:
        try:
            user_id = sys.argv[2]
            organization_id = sys.argv[3]
        except IndexError:
            print(USAGE)
            exit(1)

        print(mint_token(user_id=user_id, organization_id=organization_id))
        exit(0)

    print(USAGE)
    exit(1)

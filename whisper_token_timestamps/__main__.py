from whisper_token_timestamps.cli import cli

if __name__ == "__main__":
    cli()

import asyncio
import logging
import discord
from dotenv import load_dotenv
from bot import CountdownBot
from config.config import Config

logger = logging.getLogger(__name__)

async def main():
    # Load environment variables
    load_dotenv()

    config = Config()

    # Configure logging
    logging.basicConfig(
        level=config.log_level,
        format='%(asctime)s %(levelname)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    try:
        logger.info("Discord.py Version: %s", discord.__version__)
        bot = CountdownBot(config)
        logger.info("Starting bot...")
        await bot.start(config.discord_token)
    except Exception as e:
        logger.error("Error starting bot: %s", e)
        raise

def run():
    asyncio.run(main())

if __name__ == "__main__":
    run()

import asyncio
import logging
import discord
import redis
from discord.ext import commands
from config.config import Config
from db.redis_client import RedisClient
from games.countdown import CountdownGame

from utils.helpers import send_chunked_message, format_solution, format_round, format_results

logger = logging.getLogger(__name__)


def parse_solve_args(args: str):
    """Parse '<target> <n1> <n2> ...' into (target, numbers)"""
    parts = args.replace(',', ' ').split()
    if len(parts) < 2:
        raise ValueError("Usage: `!solve <target> <n1> <n2> ...`")
    try:
        values = [int(p) for p in parts]
    except ValueError:
        raise ValueError("Target and numbers must be whole numbers")
    return values[0], values[1:]


class CountdownBot(commands.Bot):
    def __init__(self, config: Config):
        intents = discord.Intents.default()
        intents.message_content = True  # Needed to read command arguments
        intents.guilds = True
        intents.guild_messages = True

        super().__init__(command_prefix="!", intents=intents)
        self.config = config
        self.redis_client = RedisClient(config.redis_host, config.redis_port,
                                        solution_ttl=config.game.solution_ttl)
        self.game = CountdownGame(self.redis_client, config.game)
        # One search at a time, created on first use inside the running loop
        self._solver_lock = None

        # Command handlers dictionary
        self.command_handlers = {
            'solve': self._handle_solve,
            'countdown': self._handle_countdown,
            'answer': self._handle_answer,
            'reveal': self._handle_reveal,
            'cancel': self._handle_cancel,
            'clearcache': self._handle_clear_cache,
        }

    async def setup_hook(self):
        """This is called when the bot is ready to start"""
        self.add_commands()

    async def on_ready(self):
        logger.info("Logged in as %s (ID: %s)", self.user, self.user.id)
        await self.change_presence(
            activity=discord.Activity(
                type=discord.ActivityType.playing,
                name="Countdown | !countdown"
            )
        )

    async def has_permissions(self, ctx) -> bool:
        """Check if user has required permissions (admin or moderator)"""
        return bool(ctx.guild and (
            ctx.author.guild_permissions.administrator or
            ctx.author.guild_permissions.moderate_members
        ))

    def add_commands(self):
        """Register commands using the command handlers dictionary"""
        for cmd_name, handler in self.command_handlers.items():
            # Create a closure that properly captures the handler
            def make_callback(h):
                async def callback(ctx, *, arg=None):
                    if arg is None:
                        await h(ctx)
                    else:
                        await h(ctx, arg)
                return callback

            cmd = commands.Command(make_callback(handler), name=cmd_name)
            self.add_command(cmd)

        logger.info("Registered %d commands", len(self.commands))

    @staticmethod
    def _ids(ctx):
        server_id = str(ctx.guild.id) if ctx.guild else "dm"
        return server_id, str(ctx.channel.id)

    async def _run_solver(self, func, *args):
        """Run a blocking call that may search, off the event loop and one at a time"""
        if self._solver_lock is None:
            self._solver_lock = asyncio.Semaphore(1)
        async with self._solver_lock:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, lambda: func(*args))

    async def _handle_solve(self, ctx, args=None):
        """Handle the solve command
        Usage: !solve <target> <n1> <n2> ...
        """
        try:
            target, numbers = parse_solve_args(args or "")
            self.game.check_puzzle(numbers)
        except ValueError as e:
            await ctx.send(str(e))
            return

        try:
            async with ctx.typing():
                record = await self._run_solver(self.game.solve_puzzle, numbers, target)
        except redis.RedisError:
            logger.exception("Redis error while solving %s -> %d", numbers, target)
            await ctx.send("The solver is unavailable right now, try again later.")
            return
        await send_chunked_message(ctx.channel, format_solution(record), reference=ctx.message)

    async def _handle_countdown(self, ctx):
        """Handle the countdown command - deals a new round"""
        server_id, channel_id = self._ids(ctx)
        try:
            state = self.game.start_round(server_id, channel_id, str(ctx.author.id))
        except ValueError as e:
            await ctx.send(str(e))
            return

        await ctx.send(format_round(state))

    async def _handle_answer(self, ctx, expression=None):
        """Handle the answer command
        Usage: !answer <expression>
        """
        if not expression:
            await ctx.send("Usage: `!answer <expression>`")
            return

        server_id, channel_id = self._ids(ctx)
        try:
            submission = self.game.submit_answer(server_id, channel_id, str(ctx.author.id), expression)
        except ValueError as e:
            await ctx.send(str(e))
            return

        if submission.valid:
            await ctx.send(f"{ctx.author.mention} answered **{submission.result}** "
                           f"({submission.distance} away).")
        else:
            await ctx.send(f"{ctx.author.mention} that answer doesn't count: {submission.error}")

    async def _handle_reveal(self, ctx):
        """Handle the reveal command - ends the round and shows the solver's answer"""
        server_id, channel_id = self._ids(ctx)
        try:
            async with ctx.typing():
                state, ranked, solution = await self._run_solver(self.game.reveal, server_id, channel_id)
        except ValueError as e:
            await ctx.send(str(e))
            return
        except redis.RedisError:
            logger.exception("Redis error while revealing round in %s", channel_id)
            await ctx.send("Could not reveal the round right now, try again later.")
            return

        await send_chunked_message(ctx.channel, format_results(state, ranked, solution))

    async def _handle_cancel(self, ctx):
        server_id, channel_id = self._ids(ctx)
        if self.game.cancel_round(server_id, channel_id):
            await ctx.send("Round cancelled.")
        else:
            await ctx.send("There is no active round in this channel.")

    async def _handle_clear_cache(self, ctx):
        """Handle the clearcache command - forgets every solved puzzle"""
        if not await self.has_permissions(ctx):
            await ctx.send("You need administrator or moderator permissions to use this command.")
            return

        removed = self.redis_client.clear_solutions()
        await ctx.send(f"Cleared {removed} cached solutions.")

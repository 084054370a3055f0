from typing import List, Optional
import discord

from games.countdown import RoundState, SolutionRecord, Submission

async def send_chunked_message(channel: discord.abc.Messageable, message: str, reference: Optional[discord.Message] = None):
    """
    Sends a message in chunks if it exceeds Discord's character limit
    """
    chunks = split_message(message)

    # Send first chunk with reference
    if chunks:
        await channel.send(chunks[0], reference=reference)

    # Send remaining chunks
    for chunk in chunks[1:]:
        await channel.send(chunk)

def split_message(message: str, max_length: int = 2000) -> List[str]:
    """Split a message on line boundaries into chunks of at most max_length"""
    if len(message) <= max_length:
        return [message]

    chunks = []
    current_chunk = ""

    for line in message.split('\n'):
        if len(current_chunk) + len(line) + 1 <= max_length:
            current_chunk += line + '\n'
        else:
            if current_chunk:
                chunks.append(current_chunk)
            current_chunk = line + '\n'

    if current_chunk:
        chunks.append(current_chunk)

    return chunks

def format_solution(record: SolutionRecord) -> str:
    """Describe the solver's answer for a channel"""
    if record.value is None:
        return "No numbers to work with."

    if record.exact:
        header = f"**{record.infix} = {record.value}** (exact)"
    else:
        header = f"**{record.infix} = {record.value}** ({record.distance} away from {record.target})"

    return (
        f"{header}\n"
        f"RPN: `{record.trace}`\n"
        f"Stats: {record.generated} expanded, {record.visited} visited"
    )

def format_round(state: RoundState) -> str:
    numbers = '  '.join(f"**{n}**" for n in state.numbers)
    return (
        f"Numbers: {numbers}\n"
        f"Target: **{state.target}**\n"
        f"You have {int(state.time_remaining())} seconds. Answer with `!answer <expression>`."
    )

def format_results(state: RoundState, ranked: List[Submission], solution: SolutionRecord) -> str:
    lines = [f"Target was **{state.target}** from {', '.join(str(n) for n in state.numbers)}"]

    if ranked:
        for place, sub in enumerate(ranked, start=1):
            lines.append(f"{place}. <@{sub.user_id}>: `{sub.expression}` = {sub.result} ({sub.distance} away)")
    else:
        lines.append("No valid answers this round.")

    lines.append("")
    lines.append("Solver: " + format_solution(solution))
    return '\n'.join(lines)

from kasukibot.bot import run

run()

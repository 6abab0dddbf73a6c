from scoreboard import create_app, socketio

app = create_app()

if __name__ == '__main__':
    # Use SocketIO server so leaderboard clients get live updates in dev
    socketio.run(app, debug=True)

from opnameapp import create_app

app = create_app()

if __name__ == "__main__":
    # Listen on all interfaces so handheld scanners on the LAN can reach it
    app.run(host="0.0.0.0", port=5000, debug=True)

from bluelightfilter.cli import main

main()
